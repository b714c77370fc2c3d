from __future__ import annotations

import unittest.mock as mock

from click.testing import CliRunner

from artnet_dmx.core.exceptions import ValidationError
from artnet_dmx.ui.cli import _parse_values, cli


def _patched_controller():
    controller = mock.MagicMock()
    controller.closed = False
    return controller, mock.patch(
        "artnet_dmx.dmx.controller.ArtNetController",
        return_value=controller,
    )


def test_parse_values_keeps_blank_entries_as_skips() -> None:
    assert _parse_values("255,,0x10, 3") == [255, None, 16, 3]


def test_trigger_command_sends_one_trigger() -> None:
    controller, patcher = _patched_controller()
    controller.send_trigger.return_value.result.return_value = 530

    with patcher:
        result = CliRunner().invoke(cli, ["trigger", "--key", "7"])

    assert result.exit_code == 0, result.output
    controller.send_trigger.assert_called_once_with(0xFFFF, 7, 0)
    controller.close.assert_called_once()


def test_set_command_without_hold() -> None:
    controller, patcher = _patched_controller()

    with patcher:
        result = CliRunner().invoke(cli, ["set", "-u", "2", "-c", "10", "--no-hold", "1,2,,4"])

    assert result.exit_code == 0, result.output
    controller.set_channels.assert_called_once_with(2, 10, [1, 2, None, 4])
    controller.blackout.assert_not_called()
    controller.close.assert_called_once()


def test_set_command_cleans_up_on_unexpected_error() -> None:
    """Blackout and close must run even when the write fails unexpectedly."""
    controller, patcher = _patched_controller()
    controller.set_channels.side_effect = RuntimeError("socket gone")

    with patcher:
        CliRunner().invoke(cli, ["set", "255"])

    controller.blackout.assert_called_once_with(0)
    controller.close.assert_called_once()


def test_global_options_override_config() -> None:
    controller, patcher = _patched_controller()

    with patcher as controller_cls:
        CliRunner().invoke(cli, ["--host", "10.0.0.5", "--port", "6500", "blackout", "-u", "1"])

    config = controller_cls.call_args[0][0]
    assert config.host == "10.0.0.5"
    assert config.port == 6500
    controller.blackout.assert_called_once_with(1)


def test_invalid_values_are_reported() -> None:
    result = CliRunner().invoke(cli, ["set", "--no-hold", "1,abc"])

    assert result.exit_code != 0
    assert "not an integer" in result.output


def test_debug_flag_configures_logging() -> None:
    controller, patcher = _patched_controller()
    controller.send_trigger.return_value.result.return_value = 22

    with patcher as controller_cls:
        result = CliRunner().invoke(cli, ["--debug", "trigger", "--key", "7"])

    assert result.exit_code == 0, result.output
    assert len(controller_cls.call_args.kwargs["error_listeners"]) == 1


def test_invalid_global_option_is_rejected() -> None:
    controller, patcher = _patched_controller()

    with patcher as controller_cls:
        result = CliRunner().invoke(cli, ["--refresh-ms", "-5", "blackout"])

    assert result.exit_code == 2
    assert "refresh_interval_ms" in result.output
    controller_cls.assert_not_called()


def test_set_command_reports_invalid_universe_once() -> None:
    controller, patcher = _patched_controller()
    error = ValidationError("universe", 40000, "must be 0-32767")
    controller.set_channels.side_effect = error
    controller.blackout.side_effect = error

    with patcher:
        result = CliRunner().invoke(cli, ["set", "-u", "40000", "255"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert result.output.count("Error:") == 1
    controller.close.assert_called_once()
