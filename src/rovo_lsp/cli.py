from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

import typer

from rovo_lsp.analysis import analyze_document, check_document
from rovo_lsp.analysis.model import Span
from rovo_lsp.config import (
    check_defaults,
    check_exclude_list,
    check_extensions,
    check_fail_fast,
    lsp_defaults,
    lsp_settings,
    merge_payload,
)
from rovo_lsp.exceptions import AnnotationError
from rovo_lsp.schema import CheckFindingDTO, CheckResponse, InspectResponse, handler_dto

app = typer.Typer(add_completion=False)


def _iter_sources(paths: Iterable[Path], extensions: list[str], exclude: list[str]) -> list[Path]:
    excluded = set(exclude)
    found: list[Path] = []
    for path in paths:
        if path.is_dir():
            for candidate in sorted(path.rglob("*")):
                if not candidate.is_file() or candidate.suffix not in extensions:
                    continue
                if excluded.intersection(candidate.relative_to(path).parts):
                    continue
                found.append(candidate)
        elif path.is_file():
            found.append(path)
        else:
            raise typer.BadParameter(f"{path} does not exist", param_hint="PATHS")
    return found


def _read_source(path: Path, param_hint: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        raise typer.BadParameter(f"{path} is not UTF-8 text", param_hint=param_hint) from None
    except OSError as exc:
        raise typer.BadParameter(f"cannot read {path}: {exc.strerror}", param_hint=param_hint) from None


def _finding(path: Path, span: Span | None, severity: str, message: str) -> CheckFindingDTO:
    line = span.line + 1 if span is not None else 1
    column = span.start + 1 if span is not None else 1
    return CheckFindingDTO(path=str(path), line=line, column=column, severity=severity, message=message)


def _render(finding: CheckFindingDTO) -> str:
    headline, *rest = finding.message.splitlines() or [""]
    lines = [f"{finding.path}:{finding.line}:{finding.column}: {finding.severity}: {headline}"]
    lines.extend(f"  {detail}" for detail in rest)
    return "\n".join(lines)


def _emit(response: CheckResponse, json_output: bool) -> None:
    if json_output:
        typer.echo(response.model_dump_json(indent=2))
        return
    for finding in response.findings:
        typer.echo(_render(finding), err=finding.severity == "error")
    status = "failed" if response.exit_code else "ok"
    typer.echo(f"checked {response.handlers} handlers in {response.files} files: {status}")


@app.command()
def check(
    paths: List[Path] = typer.Argument(..., help="Source files or directories to validate."),
    fail_fast: Optional[bool] = typer.Option(
        None,
        "--fail-fast/--all",
        help="Stop at the first error (default) or report every finding.",
    ),
    json_output: bool = typer.Option(False, "--json", help="Print the result as JSON."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Validate handler annotations the way the build does."""
    defaults = check_defaults(root, config)
    section = merge_payload({"fail_fast": fail_fast}, defaults)
    sources = _iter_sources(paths, check_extensions(section), check_exclude_list(section))

    findings: list[CheckFindingDTO] = []
    handler_count = 0
    failed = False
    for source in sources:
        text = _read_source(source, "PATHS")
        if check_fail_fast(section):
            try:
                handler_count += len(check_document(text))
            except AnnotationError as exc:
                findings.append(_finding(source, exc.span, "error", exc.message))
                failed = True
                break
            continue
        for analysis in analyze_document(text):
            handler_count += 1
            for diagnostic in analysis.diagnostics:
                findings.append(
                    _finding(source, diagnostic.span, diagnostic.severity.value, diagnostic.message)
                )
                failed = failed or diagnostic.is_error

    response = CheckResponse(
        files=len(sources),
        handlers=handler_count,
        findings=findings,
        exit_code=1 if failed else 0,
    )
    _emit(response, json_output)
    if failed:
        raise typer.Exit(code=1)


@app.command()
def inspect(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source file to parse."),
) -> None:
    """Print the parsed annotation model of every handler in a file as JSON."""
    text = _read_source(path, "PATH")
    handlers = [handler_dto(analysis) for analysis in analyze_document(text)]
    exit_code = 1 if any(d.severity == "error" for h in handlers for d in h.diagnostics) else 0
    response = InspectResponse(uri=path.resolve().as_uri(), handlers=handlers, exit_code=exit_code)
    typer.echo(response.model_dump_json(indent=2))


@app.command()
def serve(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override [lsp] log_level."),
    root: Path = typer.Option(Path("."), "--root"),
    config: Optional[Path] = typer.Option(None, "--config"),
) -> None:
    """Run the language server over stdio."""
    from rovo_lsp import server as lsp_server

    section = merge_payload({"log_level": log_level}, lsp_defaults(root, config))
    settings = lsp_settings(section)
    lsp_server.start(settings=settings)


def main() -> None:  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
