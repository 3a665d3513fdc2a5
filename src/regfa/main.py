import json
import logging
from dataclasses import asdict
from typing import IO, Optional

import click
from tqdm import tqdm

from regfa.compiler import compile_regex, compile_to_postfix, export
from regfa.export import FaRepresentation
from regfa.parser import RegexpError
from regfa.utils import Stage

logger = logging.getLogger(__name__)


def compile_pattern(pattern: str, stage: Stage) -> FaRepresentation:
    try:
        return export(compile_regex(pattern, stage))
    except RegexpError as e:
        raise click.ClickException(f"{pattern!r}: {e}") from e


@click.command(name="regfa", help="Compile regular expressions to finite automata")
@click.argument("pattern", type=click.STRING, required=False)
@click.option(
    "--input-file",
    type=click.File(),
    default=None,
    help="File with one pattern per line",
)
@click.option(
    "--out", "-o", type=click.File("w"), default="-", help="Output of the file"
)
@click.option(
    "--stage",
    "-s",
    type=click.Choice([stage.value for stage in Stage]),
    default=Stage.DFA.value,
    show_default=True,
    help="Pipeline stage to output",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["dot", "json"]),
    default="json",
    show_default=True,
    help="Output format of the automata",
)
@click.option(
    "--render",
    "-r",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory to draw the automata in, requires the Graphviz executables",
)
@click.option(
    "--debug",
    "-g",
    is_flag=True,
    show_default=True,
    default=False,
    help="Turn on debug mode",
)
def entry(
    pattern: Optional[str],
    input_file: Optional[IO],
    out: IO,
    stage: str,
    output_format: str,
    render: Optional[str],
    debug: bool,
):
    if debug:
        logging.basicConfig(level=logging.DEBUG)

    if input_file is not None:
        patterns = [line.rstrip("\n") for line in input_file if line.strip()]
    elif pattern is not None:
        patterns = [pattern]
    else:
        raise click.UsageError("expected a PATTERN or --input-file")

    pipeline_stage = Stage(stage)
    if render is not None and pipeline_stage == Stage.POSTFIX:
        raise click.UsageError("postfix expressions can not be rendered")

    # a pattern listed twice is compiled and reported once
    distinct = list(dict.fromkeys(patterns))
    if len(distinct) < len(patterns):
        logger.debug("skipping %d duplicate patterns", len(patterns) - len(distinct))

    results = {}
    for p in tqdm(distinct, disable=not debug):
        if pipeline_stage == Stage.POSTFIX:
            results[p] = compile_to_postfix(p)
            continue
        representation = compile_pattern(p, pipeline_stage)
        if render is not None:
            representation.render(directory=render)
        if output_format == "dot":
            results[p] = representation.dot_description
        else:
            results[p] = asdict(representation)

    if output_format == "dot" or pipeline_stage == Stage.POSTFIX:
        out.write("\n".join(results.values()) + "\n")
    else:
        out.write(json.dumps(results, indent=4, ensure_ascii=False) + "\n")


if __name__ == "__main__":
    entry()
