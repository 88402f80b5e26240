"""
Render an ExecutionResult as the run response.

Success: ``success``, empty ``errors``, ``duration`` (ms, 1 dp), echoed
``params``, ``columns``, ``rows`` and, when requested, ``explain``.
Failure: ``success`` false with one message in ``errors``; duration and the
attempted params are still reported for diagnosis.
"""

from data_explorer.core.errors import error_message
from data_explorer.engines.sql.envelope import ExecutionResult
from data_explorer.schemas import ExecutionResponse


def format_result(result: ExecutionResult, *, explain: bool = False) -> ExecutionResponse:
    if result.error is not None:
        return ExecutionResponse(
            success=False,
            errors=[error_message(result.error)],
            duration=result.duration_ms,
            params=result.params,
        )
    return ExecutionResponse(
        success=True,
        errors=[],
        duration=result.duration_ms,
        params=result.params,
        columns=result.columns,
        rows=result.rows or [],
        explain=result.explain if explain else None,
    )
