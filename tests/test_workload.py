"""Tests for the simulated workload."""

from progview.tree import Root
from progview.workload import Workload


class TestWorkload:
    """Tests for the demonstration workload."""

    def test_adds_one_task_per_worker_on_start(self):
        root = Root()
        workload = Workload(root, workers=3, jobs_per_worker=1, step_delay=0.5, seed=1)

        workload.start()
        try:
            entries = []
            root.sorted_snapshot(entries)
            names = [value.name for _, value in entries]
            assert names[:1] == ["worker 1"]
            assert {"worker 1", "worker 2", "worker 3"} <= set(names)
        finally:
            workload.stop()
            workload.wait()

    def test_runs_all_jobs_and_empties_the_tree(self):
        root = Root()
        workload = Workload(root, workers=2, jobs_per_worker=2, step_delay=0.001, seed=3)

        workload.start().wait()

        assert workload.is_finished()
        assert root.num_tasks() == 0
        assert workload.stats.jobs_done + workload.stats.jobs_failed == 4
        messages = []
        root.copy_messages(messages)
        texts = [message.text for message in messages]
        assert texts.count("all 2 jobs finished") == 2

    def test_failure_rate_fails_every_job(self):
        root = Root()
        workload = Workload(root, workers=1, jobs_per_worker=3, step_delay=0.001, failure_rate=1.0, seed=5)

        workload.start().wait()

        assert workload.stats.jobs_failed == 3
        assert workload.stats.jobs_done == 0

    def test_stop_ends_workers_early(self):
        root = Root()
        workload = Workload(root, workers=2, jobs_per_worker=10, step_delay=1.0, seed=9)

        workload.start()
        workload.stop()
        workload.wait(timeout=5)

        assert workload.is_finished()
        assert root.num_tasks() == 0
        messages = []
        root.copy_messages(messages)
        texts = [message.text for message in messages]
        assert "stopped early" in texts
