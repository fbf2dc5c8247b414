"""Testes para a configuração de logs estruturados."""

import logging

from shared.logging import configure_logging


class TestConfigureLogging:
    def test_installs_message_only_handler(self, monkeypatch):
        """Sem handlers no root, o formato fica só com a mensagem JSON."""
        monkeypatch.setattr(logging.root, "handlers", [])

        logger = configure_logging("commerce")

        assert len(logging.root.handlers) == 1
        assert logging.root.handlers[0].formatter._fmt == "%(message)s"
        assert logger is not None

    def test_keeps_existing_handlers(self, monkeypatch):
        existente = logging.StreamHandler()
        monkeypatch.setattr(logging.root, "handlers", [existente])

        configure_logging("commerce")

        assert logging.root.handlers == [existente]
