"""Human-readable interpretation of container exit codes."""

from __future__ import annotations

_EXIT_CODE_MEANINGS: dict[int, str] = {
    0: "Completed",
    1: "General error in the application",
    2: "Misuse of shell builtins",
    126: "Invoked command cannot execute",
    127: "Command not found",
    128: "Invalid exit argument",
    130: "Terminated by Ctrl+C",
    137: "SIGKILL (forced kill / OOMKilled)",
    143: "SIGTERM (graceful termination)",
}


def explain_exit_code(code: int) -> str:
    """Return ``"<code> (<meaning>)"``.

    Codes above 128 that are not in the table are reported as the signal
    number that terminated the process.
    """
    meaning = _EXIT_CODE_MEANINGS.get(code)
    if meaning is not None:
        return f"{code} ({meaning})"
    if code > 128:
        return f"{code} (signal {code - 128})"
    return f"{code} (unknown exit code)"
