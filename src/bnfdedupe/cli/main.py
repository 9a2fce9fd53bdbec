"""Command-line interface for bnfdedupe.

Adapts JSONL files to the library entry points: resolve, audit and learn.
"""

import importlib.metadata
import json
import sys
from contextlib import nullcontext
from pathlib import Path
from typing import Any

import click

from bnfdedupe.runlog import RunLogger, generate_run_id

__all__ = ["cli"]

try:
    __version__ = importlib.metadata.version("bnfdedupe")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.4.0"  # Fallback for development


def _open_logger(log_path: str | None) -> Any:
    if log_path is None:
        return nullcontext(None)
    return RunLogger(generate_run_id(), Path(log_path))


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True))


@click.group()
@click.version_option(version=__version__, prog_name="bnfdedupe")
def cli() -> None:
    """Entity resolution and household audit for beneficiary registries.

    Use 'bnfdedupe COMMAND --help' for command-specific help.
    """


# ---------------------------------------------------------------------------
# resolve
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default=None,
    help="Write clusters to this JSONL file instead of printing the result",
)
@click.option("--min-pair-score", type=float, default=0.62, help="Baseline pair threshold (default: 0.62)")
@click.option(
    "--min-internal-score",
    type=float,
    default=0.65,
    help="Spanning-tree cut threshold (default: 0.65)",
)
@click.option("--chunk-size", type=int, default=3000, help="Maximum records per block (default: 3000)")
@click.option("--workers", "-w", type=int, default=1, help="Worker processes (default: 1, inline)")
@click.option(
    "--rules",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSONL file of stored learned rules",
)
@click.option("--log", "log_path", type=click.Path(), default=None, help="JSONL run log path")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def resolve(
    input_path: str,
    output: str | None,
    min_pair_score: float,
    min_internal_score: float,
    chunk_size: int,
    workers: int,
    rules: str | None,
    log_path: str | None,
    verbose: bool,
) -> None:
    """Group duplicate beneficiaries in INPUT_PATH (JSONL of records).

    Examples
    --------
        bnfdedupe resolve registry.jsonl
        bnfdedupe resolve registry.jsonl -o clusters.jsonl --workers 4
        bnfdedupe resolve registry.jsonl --rules rules.jsonl --log run.jsonl
    """
    from bnfdedupe import EngineConfig, load_rules, read_jsonl, resolve_duplicates, write_jsonl

    try:
        rows = read_jsonl(input_path)
        config = EngineConfig(
            min_pair_score=min_pair_score,
            min_internal_score=min_internal_score,
            block_chunk_size=chunk_size,
            max_workers=workers,
            learned_rules=load_rules(rules) if rules else (),
        )

        if verbose:
            click.echo(f"Read {len(rows)} records from {input_path}", err=True)
            for name in config.fallbacks:
                click.secho(f"  Setting '{name}' is invalid, using default", fg="yellow", err=True)

        with _open_logger(log_path) as logger:
            result = resolve_duplicates(rows, config, logger=logger)

        if output is None:
            _echo_json(result.to_dict())
            return

        write_jsonl(result.clusters, output)
        click.secho(
            f"✓ Found {len(result.clusters)} clusters "
            f"({len(result.unclustered)} records unclustered), written to {output}",
            fg="green",
        )

    except Exception as e:
        click.secho(f"✗ Error: {e}", fg="red", err=True)
        if verbose:
            import traceback

            click.echo(traceback.format_exc(), err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# audit
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default=None,
    help="Write findings to this JSONL file instead of printing them",
)
@click.option(
    "--rule",
    "rule_names",
    multiple=True,
    help="Audit rule to run; repeat for several (default: all)",
)
@click.option("--log", "log_path", type=click.Path(), default=None, help="JSONL run log path")
def audit(
    input_path: str,
    output: str | None,
    rule_names: tuple[str, ...],
    log_path: str | None,
) -> None:
    """Audit INPUT_PATH (JSONL of records) against household policy rules.

    Examples
    --------
        bnfdedupe audit registry.jsonl
        bnfdedupe audit registry.jsonl --rule duplicate_identifier -o findings.jsonl
    """
    from bnfdedupe import audit_records, read_jsonl, write_jsonl

    try:
        rows = read_jsonl(input_path)
        with _open_logger(log_path) as logger:
            findings = audit_records(rows, rule_names or None, logger=logger)

        if output is None:
            _echo_json([finding.to_dict() for finding in findings])
            return

        write_jsonl(findings, output)
        high = sum(1 for f in findings if f.severity == "high")
        click.secho(f"✓ {len(findings)} findings ({high} high severity), written to {output}", fg="green")

    except Exception as e:
        click.secho(f"✗ Error: {e}", fg="red", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# learn
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--append-to",
    type=click.Path(dir_okay=False),
    default=None,
    help="Append the learned rule to this JSONL rule store",
)
@click.option("--activate", is_flag=True, help="Store the rule enabled")
@click.option("--log", "log_path", type=click.Path(), default=None, help="JSONL run log path")
def learn(
    input_path: str,
    append_to: str | None,
    activate: bool,
    log_path: str | None,
) -> None:
    """Learn a matching rule from a confirmed cluster in INPUT_PATH.

    INPUT_PATH holds the records of one cluster a reviewer confirmed but
    the engine did not produce. The rule is printed, and stored when
    --append-to is given. Rules are proposed disabled unless --activate.

    Examples
    --------
        bnfdedupe learn confirmed.jsonl
        bnfdedupe learn confirmed.jsonl --append-to rules.jsonl --activate
    """
    from bnfdedupe import learn_rule, read_jsonl

    try:
        rows = read_jsonl(input_path)
        with _open_logger(log_path) as logger:
            rule = learn_rule(rows, logger=logger)

        if rule is None:
            click.secho("No rule learned: the cluster shows no consistent signal", fg="yellow", err=True)
            return

        if activate:
            rule = rule.activate()

        _echo_json(rule.to_dict())

        if append_to is not None:
            store = Path(append_to)
            store.parent.mkdir(parents=True, exist_ok=True)
            with store.open("a", encoding="utf-8", newline="\n") as f:
                f.write(json.dumps(rule.to_dict(), ensure_ascii=False, sort_keys=True) + "\n")
            click.secho(f"✓ Rule {rule.rule_id} appended to {append_to}", fg="green", err=True)

    except Exception as e:
        click.secho(f"✗ Error: {e}", fg="red", err=True)
        sys.exit(1)


if __name__ == "__main__":
    cli()
