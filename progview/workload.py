"""Simulated work that keeps a progress tree busy, for demonstrations."""

import random
import threading
from dataclasses import dataclass, field
from typing import Optional

from .tree import Item, Root

UNITS = ("files", "items", "chunks", None)


@dataclass
class WorkloadStats:
    jobs_done: int = 0
    jobs_failed: int = 0


@dataclass
class Workload:
    """Worker threads running a number of jobs each, with nested steps.

    Every worker owns a top-level task for its whole lifetime, so the tree is
    only empty once all workers are finished.
    """
    root: Root
    workers: int = 4
    jobs_per_worker: int = 5
    step_delay: float = 0.05
    failure_rate: float = 0.1
    seed: Optional[int] = None
    stats: WorkloadStats = field(default_factory=WorkloadStats)

    def __post_init__(self):
        self._rng = random.Random(self.seed)
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    def start(self) -> "Workload":
        for index in range(self.workers):
            item = self.root.add_child(f"worker {index + 1}")
            item.init(self.jobs_per_worker, "jobs")
            seed = self._rng.randrange(2**32)
            thread = threading.Thread(
                target=self._work, args=(item, random.Random(seed)), daemon=True, name=f"worker-{index + 1}"
            )
            self._threads.append(thread)
            thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()

    def is_finished(self) -> bool:
        return not any(thread.is_alive() for thread in self._threads)

    def wait(self, timeout: Optional[float] = None) -> None:
        for thread in self._threads:
            thread.join(timeout)

    def _work(self, worker: Item, rng: random.Random) -> None:
        with worker:
            for job_index in range(self.jobs_per_worker):
                if self._stop.is_set():
                    worker.fail("stopped early")
                    return
                self._run_job(worker, job_index + 1, rng)
                worker.inc()
            worker.done(f"all {self.jobs_per_worker} jobs finished")

    def _run_job(self, worker: Item, number: int, rng: random.Random) -> None:
        steps = rng.randint(5, 30)
        with worker.add_child(f"job {number}") as job:
            job.init(steps, rng.choice(UNITS))
            job.info(f"starting {steps} steps")
            for step in range(steps):
                if self._stop.wait(self.step_delay * rng.uniform(0.5, 1.5)):
                    return
                if step == steps // 2:
                    self._run_substep(job, rng)
                job.inc()
            if rng.random() < self.failure_rate:
                job.fail("checksum mismatch")
                with self._lock:
                    self.stats.jobs_failed += 1
            else:
                job.done("finished")
                with self._lock:
                    self.stats.jobs_done += 1

    def _run_substep(self, job: Item, rng: random.Random) -> None:
        with job.add_child("verify") as verify:
            verify.init(3, "checks")
            for _ in range(3):
                if self._stop.wait(self.step_delay):
                    return
                verify.inc()
            if rng.random() < 0.2:
                verify.blocked("waiting for lock")
                self._stop.wait(self.step_delay * 4)
                verify.running()
