import logging

import click

from hue_backup.log import ROOT_LOGGER, _formatter_for, get_logger, setup_logging


def test_get_logger_is_cached_per_name():
    assert get_logger("discovery") is get_logger("discovery")
    assert get_logger("discovery").name == "hue_backup.discovery"
    assert get_logger("hue_backup.discovery") is get_logger("discovery")
    assert get_logger().name == ROOT_LOGGER


def test_levels_are_split_between_streams(capsys):
    setup_logging(timestamps=False)
    logger = get_logger("test")

    logger.debug("hidden")
    logger.info("hello %s", "world")
    logger.warning("careful")
    logger.error("broken")

    captured = capsys.readouterr()
    assert captured.out == "[test] hello world\n"
    assert captured.err == "[test] careful\n[test] broken\n"


def test_verbose_enables_debug(capsys):
    setup_logging(verbose=True, timestamps=False)

    get_logger("test").debug("details")

    assert capsys.readouterr().out == "[test] details\n"


def test_timestamps_prefix_messages(capsys):
    setup_logging()

    get_logger("test").info("hello")

    out = capsys.readouterr().out
    assert out.startswith("[")
    assert out.endswith("] [test] hello\n")


def test_setup_replaces_handlers():
    setup_logging()
    setup_logging(verbose=True)

    logger = logging.getLogger(ROOT_LOGGER)
    assert len(logger.handlers) == 2
    assert logger.level == logging.DEBUG


def test_forced_colour_styles_levels_and_prefix(capsys):
    setup_logging(verbose=True, timestamps=False, force_colour=True)
    logger = get_logger("test")

    logger.debug("details")
    logger.info("hello")
    logger.warning("careful")
    logger.error("broken")

    prefix = click.style("[test]", fg="cyan")
    captured = capsys.readouterr()
    assert captured.out == (
        f"{prefix} {click.style('details', fg='bright_black')}\n"
        f"{prefix} hello\n"
    )
    assert captured.err == (
        f"{prefix} {click.style('careful', fg='yellow')}\n"
        f"{prefix} {click.style('broken', fg='red')}\n"
    )


def test_colour_only_on_terminals():
    class Terminal:
        def isatty(self):
            return True

    class Pipe:
        def isatty(self):
            return False

    record = logging.LogRecord("hue_backup.test", logging.ERROR, __file__, 1, "boom", None, None)

    assert "\x1b[" in _formatter_for(Terminal(), False, False).format(record)
    assert _formatter_for(Pipe(), False, False).format(record) == "[test] boom"
    assert "\x1b[" in _formatter_for(Pipe(), False, True).format(record)


def test_cli_forces_colour_from_environment(monkeypatch, capsys):
    from hue_backup import cli

    monkeypatch.setenv(cli.ENV_FORCE_COLOUR, "1")
    monkeypatch.setattr(cli, "run", lambda: get_logger("cli").warning("careful") or 0)

    assert cli.main([]) == 0
    assert click.style("careful", fg="yellow") in capsys.readouterr().err
