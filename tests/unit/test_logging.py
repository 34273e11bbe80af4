"""Unit tests for HelmexecLogger and the output log pump."""

import io
import threading

from helmexec.core.models.execution import OutputLine
from helmexec.services.logging import HelmexecLogger, OutputLogPump


class TestHelmexecLogger:
    def test_console_level_filters(self):
        stream = io.StringIO()
        logger = HelmexecLogger(name="helmexec.test.level", level="info", stream=stream)

        logger.debug("hidden")
        logger.info("Upgrading release=%s, chart=%s", "web", "chart")

        assert stream.getvalue() == "Upgrading release=web, chart=chart\n"

    def test_set_level(self):
        stream = io.StringIO()
        logger = HelmexecLogger(name="helmexec.test.set_level", level="error", stream=stream)

        logger.set_level("debug")
        logger.debug("exec: helm version")

        assert "exec: helm version" in stream.getvalue()

    def test_rotating_file(self, tmp_path):
        log_file = tmp_path / "logs" / "helmexec.log"
        logger = HelmexecLogger(
            name="helmexec.test.file", level="debug", console_enabled=False, log_file=log_file
        )

        logger.warning("careful")

        assert "[WARNING] helmexec.test.file: careful" in log_file.read_text()


class TestOutputLogPump:
    def test_lines_are_prefixed(self, logger):
        pump = OutputLogPump(logger)

        pump.emit(OutputLine("helm", "1a2b3c4d", "stdout", "hello"))
        pump.emit(OutputLine("helm", "", "stderr", "warning"))
        pump.barrier()
        pump.close()

        assert logger.records == [
            ("debug", "helm:1a2b3c4d> hello"),
            ("debug", "helm> warning"),
        ]

    def test_order_is_preserved_per_producer(self, logger):
        pump = OutputLogPump(logger)

        def produce(cid):
            for i in range(50):
                pump.emit(OutputLine("helm", cid, "stdout", str(i)))

        threads = [threading.Thread(target=produce, args=(cid,)) for cid in ("aaaa", "bbbb")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        pump.barrier()
        pump.close()

        for cid in ("aaaa", "bbbb"):
            prefix = f"helm:{cid}> "
            lines = [line[len(prefix) :] for line in logger.lines if line.startswith(prefix)]
            assert lines == [str(i) for i in range(50)]

    def test_close_is_idempotent(self, logger):
        pump = OutputLogPump(logger)
        pump.close()
        pump.emit(OutputLine("helm", "", "stdout", "after restart"))
        pump.close()
        pump.close()

        assert logger.lines == ["helm> after restart"]

    def test_close_during_concurrent_emits_does_not_hang(self, logger):
        pump = OutputLogPump(logger)
        per_producer = 200

        def produce(cid):
            for i in range(per_producer):
                pump.emit(OutputLine("helm", cid, "stdout", str(i)))

        def close_repeatedly():
            for _ in range(50):
                pump.close()

        threads = [threading.Thread(target=produce, args=(cid,)) for cid in ("aaaa", "bbbb", "cccc")]
        threads.append(threading.Thread(target=close_repeatedly))
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert not any(t.is_alive() for t in threads)
        pump.close()
        assert len(logger.lines) == 3 * per_producer
