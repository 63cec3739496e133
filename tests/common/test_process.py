import unittest
from unittest.mock import patch
import os
import subprocess
import sys
import tempfile

# Add the parent directory to sys.path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from utils.process import CommandResult, run_command_with_log, stop_process


class TestRunCommandWithLog(unittest.TestCase):

    def test_success_collects_output(self):
        script = "import sys; print('hello'); print('oops', file=sys.stderr)"
        with self.assertLogs('utils.process', level='INFO') as logs:
            result = run_command_with_log([sys.executable, "-c", script])

        self.assertTrue(result.ok)
        self.assertEqual(result.returncode, 0)
        self.assertIn("hello", result.output_tail)
        self.assertIn("oops", result.output_tail)
        self.assertTrue(any("[stdout] hello" in line for line in logs.output))
        self.assertTrue(any("[stderr] oops" in line for line in logs.output))

    def test_failure_propagates_exit_code(self):
        result = run_command_with_log([sys.executable, "-c", "import sys; sys.exit(7)"])

        self.assertFalse(result.ok)
        self.assertEqual(result.returncode, 7)

    def test_output_tail_is_bounded(self):
        script = "for i in range(50): print(i)"
        result = run_command_with_log([sys.executable, "-c", script], tail_lines=5)

        self.assertEqual(result.output_tail, ["45", "46", "47", "48", "49"])

    def test_runs_in_given_directory(self):
        with tempfile.TemporaryDirectory() as tmp:
            result = run_command_with_log(
                [sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp
            )
            self.assertEqual(
                os.path.realpath(result.output_tail[-1]), os.path.realpath(tmp)
            )

    def test_missing_executable_raises(self):
        with self.assertRaises(OSError):
            run_command_with_log(["/definitely/not/a/real/binary"])

    def test_output_joins_tail(self):
        result = CommandResult(args=["x"], returncode=1, output_tail=["a", "b"])
        self.assertEqual(result.output, "a\nb")


class TestStopOnInterrupt(unittest.TestCase):

    def test_interrupt_stops_child_and_reraises(self):
        real_wait = subprocess.Popen.wait
        interrupted = []

        def wait_then_interrupt(process, timeout=None):
            if timeout is None and not interrupted:
                interrupted.append(process)
                raise KeyboardInterrupt
            return real_wait(process, timeout=timeout)

        with patch.object(
            subprocess.Popen, 'wait', autospec=True, side_effect=wait_then_interrupt
        ):
            with self.assertRaises(KeyboardInterrupt):
                run_command_with_log([sys.executable, "-c", "import time; time.sleep(60)"])

        self.assertEqual(len(interrupted), 1)
        self.assertIsNotNone(interrupted[0].poll())

    @unittest.skipIf(os.name == "nt", "SIGTERM cannot be ignored on Windows")
    @patch('utils.process.TERMINATE_GRACE_SECONDS', 0.5)
    def test_child_ignoring_terminate_is_killed(self):
        script = (
            "import signal, time; "
            "signal.signal(signal.SIGTERM, signal.SIG_IGN); "
            "print('ready', flush=True); "
            "time.sleep(60)"
        )
        process = subprocess.Popen(
            [sys.executable, "-c", script], stdout=subprocess.PIPE, text=True
        )
        try:
            self.assertEqual(process.stdout.readline().strip(), "ready")

            with self.assertLogs('utils.process', level='WARNING') as logs:
                stop_process(process)

            self.assertIsNotNone(process.poll())
            self.assertLess(process.returncode, 0)
            self.assertTrue(any("killing it" in line for line in logs.output))
        finally:
            process.stdout.close()
            if process.poll() is None:
                process.kill()
                process.wait()

    def test_stopping_finished_child_is_a_no_op(self):
        process = subprocess.Popen([sys.executable, "-c", "pass"])
        process.wait()

        stop_process(process)

        self.assertEqual(process.returncode, 0)


if __name__ == '__main__':
    unittest.main()
