from unittest.mock import MagicMock, patch

import pytest
from tenacity import RetryError, stop_after_attempt

from data_explorer.backend_pre_start import init, init_target, logger


def test_init_successful_connection() -> None:
    engine_mock = MagicMock()

    session_mock = MagicMock()
    session_mock.exec.return_value = True
    # with Session(engine) as session: binds session to Session(engine).__enter__()
    session_mock.__enter__.return_value = session_mock
    session_mock.__exit__.return_value = None

    with (
        patch("data_explorer.backend_pre_start.Session", return_value=session_mock),
        patch.object(logger, "info"),
        patch.object(logger, "error"),
        patch.object(logger, "warn"),
    ):
        init(engine_mock)

    session_mock.exec.assert_called_once()


def test_init_target_checks_and_closes() -> None:
    conn = MagicMock()
    with (
        patch("data_explorer.backend_pre_start.connect", return_value=conn),
        patch("data_explorer.backend_pre_start.health_check", return_value=True) as hc,
    ):
        init_target()

    hc.assert_called_once_with(conn)
    conn.close.assert_called_once()


def test_init_target_unhealthy_raises() -> None:
    conn = MagicMock()
    with (
        patch("data_explorer.backend_pre_start.connect", return_value=conn),
        patch("data_explorer.backend_pre_start.health_check", return_value=False),
        pytest.raises(RetryError),
    ):
        init_target.retry_with(stop=stop_after_attempt(1))()

    conn.close.assert_called_once()
