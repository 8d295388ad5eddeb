"""
Hex Loop - Generator Package
Region growth, clue reduction and the batch map runner.
"""
from .region import RegionGenerator
from .difficulty import DifficultyReducer
from .batch import GenerationError, GenerationTask, build_tasks, generate_all, generate_puzzle, run_task

__all__ = [
    'RegionGenerator', 'DifficultyReducer', 'GenerationError', 'GenerationTask',
    'build_tasks', 'generate_all', 'generate_puzzle', 'run_task',
]
