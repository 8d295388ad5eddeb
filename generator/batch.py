"""
End-to-end map generation and the parallel batch runner.

One task produces one map file: grow a region, check the fully clued puzzle
is solvable by propagation (regrowing if not), hide clues for the task's
difficulty, then write maps/<size>/<difficulty>/<index>.bin. Tasks share no
state; each worker process owns one BatchSolver for all its tasks.
"""
import random
from dataclasses import dataclass
from multiprocessing import Pool
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from core.config import (
    DEFAULT_OUTPUT_DIR,
    DIFFICULTIES,
    DIFFICULTY_FLOORS,
    MAX_GENERATION_ATTEMPTS,
    PUZZLES_PER_BUCKET,
    SIZE_RADII,
)
from core.map_codec import write_map_file
from core.solver import BatchSolver
from core.types import Puzzle
from generator.difficulty import DifficultyReducer
from generator.region import RegionGenerator
from utils.logging_utils import get_logger

logger = get_logger("generator")


class GenerationError(RuntimeError):
    """No acceptable puzzle was found within the attempt limit."""


@dataclass(frozen=True)
class GenerationTask:
    size: str
    difficulty: str
    index: int
    radius: int
    output_path: str
    seed: Optional[int] = None

    @property
    def label(self) -> str:
        return f"{self.size}/{self.difficulty}/{self.index}"


TaskResult = Tuple[GenerationTask, bool, str]


def generate_puzzle(radius: int, difficulty: str, rng: Optional[random.Random] = None,
                    solver: Optional[BatchSolver] = None,
                    max_attempts: int = MAX_GENERATION_ATTEMPTS) -> Puzzle:
    """
    Produce one reduced puzzle.

    Raises:
        GenerationError: Every grown region failed the full-clue solve
        ValueError: Unknown difficulty
    """
    rng = rng or random.Random()
    reducer = DifficultyReducer(solver)
    reducer.floor_for(difficulty)

    for attempt in range(1, max_attempts + 1):
        puzzle = RegionGenerator(radius, rng).generate()

        if not reducer.is_solvable(puzzle):
            logger.info("Attempt %d (radius %d): full clue set not solvable by propagation, regrowing",
                        attempt, radius)
            continue
        if not reducer.solver.matches_solution(puzzle):
            logger.warning("Attempt %d (radius %d): solver loop differs from region boundary, regrowing",
                           attempt, radius)
            continue

        reducer.reduce(puzzle, difficulty, rng)
        return puzzle

    raise GenerationError(f"No solvable region for radius {radius} after {max_attempts} attempts")


def build_tasks(output_root: Union[str, Path] = DEFAULT_OUTPUT_DIR,
                sizes: Optional[Sequence[str]] = None,
                difficulties: Optional[Sequence[str]] = None,
                count: int = PUZZLES_PER_BUCKET,
                seed: Optional[int] = None) -> List[GenerationTask]:
    """
    Expand the size × difficulty matrix into numbered tasks.

    With a seed every task gets its own derived seed, so a run is
    reproducible regardless of worker scheduling.
    """
    sizes = list(sizes or SIZE_RADII)
    difficulties = list(difficulties or DIFFICULTIES)
    for size in sizes:
        if size not in SIZE_RADII:
            raise ValueError(f"Unknown map size: {size!r}")
    for difficulty in difficulties:
        if difficulty not in DIFFICULTY_FLOORS:
            raise ValueError(f"Unknown difficulty: {difficulty!r}")

    seeder = random.Random(seed) if seed is not None else None
    root = Path(output_root)
    tasks = []
    for size in sizes:
        for difficulty in difficulties:
            for index in range(1, count + 1):
                path = root / size / difficulty / f"{index}.bin"
                task_seed = seeder.getrandbits(32) if seeder is not None else None
                tasks.append(GenerationTask(size, difficulty, index, SIZE_RADII[size], str(path), task_seed))
    return tasks


# One solver per worker process, created by the pool initializer
_worker_solver: Optional[BatchSolver] = None


def _init_worker() -> None:
    global _worker_solver
    _worker_solver = BatchSolver()


def run_task(task: GenerationTask, solver: Optional[BatchSolver] = None) -> TaskResult:
    """Generate and write one map; failures are reported, never raised."""
    solver = solver or _worker_solver or BatchSolver()
    rng = random.Random(task.seed)
    try:
        puzzle = generate_puzzle(task.radius, task.difficulty, rng, solver)
        write_map_file(task.output_path, puzzle)
    except (GenerationError, OSError, ValueError) as exc:
        logger.warning("Task %s failed: %s", task.label, exc)
        return task, False, str(exc)

    visible = len(puzzle.visible_clues())
    return task, True, f"{visible}/{len(puzzle.cells)} clues visible"


def generate_all(tasks: Iterable[GenerationTask], workers: Optional[int] = None) -> List[TaskResult]:
    """
    Run tasks, in parallel unless workers == 1.

    Args:
        tasks: Tasks to run
        workers: Process count; None uses one per CPU
    """
    tasks = list(tasks)
    results: List[TaskResult] = []

    if workers == 1:
        solver = BatchSolver()
        outcomes = (run_task(task, solver) for task in tasks)
        for done, result in enumerate(outcomes, start=1):
            _report(result, done, len(tasks))
            results.append(result)
        return results

    with Pool(processes=workers, initializer=_init_worker) as pool:
        for done, result in enumerate(pool.imap_unordered(run_task, tasks), start=1):
            _report(result, done, len(tasks))
            results.append(result)
    return results


def _report(result: TaskResult, done: int, total: int) -> None:
    task, ok, message = result
    if ok:
        logger.info("[%d/%d] %s -> %s (%s)", done, total, task.label, task.output_path, message)
    else:
        logger.info("[%d/%d] %s skipped", done, total, task.label)
