#!/usr/bin/env python3
"""
bangumicard - Bangumi profile cards for markdown

Renders ::bangumi{user="..."} directives found in a markdown file into
placeholder cards. Each card carries an inline script that fetches the
user's profile from the Bangumi API when the page is viewed; nothing is
fetched at build time.

As with its siblings, this tool follows the ChRIS "plugin" pattern as a
general purpose python app framework.

Usage:
    bangumicard inputdir/ outputdir/ --inputFile page.md

Examples:
    # Standalone HTML page
    bangumicard . output/ --inputFile page.md

    # Markdown with the directives replaced by raw HTML, for another site generator
    bangumicard . output/ --inputFile page.md --outputFormat markdown

    # Stable ids across rebuilds, stacked layout, verbose output
    bangumicard . output/ --inputFile page.md --idScheme hash --layout stacked -vv
"""

import sys
import traceback
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .lib import Parser, ASTNode, Compiler, DirectiveRegistry, __version__, LOG, state_connectToLogger
from .models import ProgramState, pipeline


DISPLAY_TITLE = r"""
  _                                    _                       _
 | |__   __ _ _ __   __ _ _   _ _ __ (_)   ___ __ _ _ __ __| |
 | '_ \ / _` | '_ \ / _` | | | | '_ ` _ \ / __/ _` | '__/ _` |
 | |_) | (_| | | | | (_| | |_| | | | | | | (_| (_| | | | (_| |
 |_.__/ \__,_|_| |_|\__, |\__,_|_| |_| |_|\___\__,_|_|  \__,_|
                    |___/
  Bangumi profile cards for markdown
"""

# Define CLI arguments
parser = ArgumentParser(
    description="bangumicard - render ::bangumi{user=...} directives into profile cards",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--inputFile", required=True, type=str, help="Input markdown file (relative to inputdir)"
)

parser.add_argument(
    "--outputFormat",
    default="html",
    choices=["html", "markdown"],
    help="Write a standalone HTML page, or markdown with directives replaced by HTML",
)

parser.add_argument(
    "--layout",
    default=None,
    choices=["grouped", "stacked"],
    help="Card layout variant (defaults to BANGUMICARD_LAYOUT or 'grouped')",
)

parser.add_argument(
    "--idScheme",
    default=None,
    choices=["counter", "hash", "random"],
    help="Card instance id scheme (defaults to BANGUMICARD_ID_SCHEME or 'counter')",
)

parser.add_argument(
    "--outputSubdir",
    default=".",
    type=str,
    help="Subdirectory within outputdir for the rendered file",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve all file paths.

    Returns:
        ProgramState with added fields:
            - inputSourceFile: Resolved path to the markdown input
            - outputTargetdir: Created output directory path
            - envOK: True if environment is valid

    Exits:
        1 if the input file is not found
    """

    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    input_file = state.inputdir / state.inputFile

    if not input_file.is_file():
        print(f"Error: Input file not found: {input_file}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.inputSourceFile = input_file
    LOG(f"Input file: {input_file}", level=2)

    state.outputTargetdir = state.outputdir / state.outputSubdir
    state.outputTargetdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.outputTargetdir}", level=2)

    state.envOK = True
    return state


def source_parse(inputstate: ProgramState) -> ProgramState:
    """
    Read the markdown source and split it into text and directive segments.

    Returns:
        ProgramState with added field:
            - sourceText: Raw markdown
            - parsedSource: List of TextSegment / ASTNode

    Exits:
        1 if the file cannot be read or a container directive is unclosed
    """

    state = inputstate.copy()

    LOG("Reading source file...", level=1)

    try:
        source = state.inputSourceFile.read_text(encoding="utf-8")
        state.sourceText = source
        LOG(f"Read {len(source)} characters from {state.inputSourceFile.name}", level=2)
    except OSError as e:
        print(f"Error reading input file: {e}", file=sys.stderr)
        sys.exit(1)

    LOG("Scanning source for directives...", level=1)
    try:
        registry = DirectiveRegistry()
        LOG(f"Recognised directives: {', '.join(registry.names_list())}", level=2)
        directive_parser = Parser(source, debug=(state.verbosity >= 3), registry=registry)
        state.parsedSource = directive_parser.parse()
        nodes = [s for s in state.parsedSource if isinstance(s, ASTNode)]
        LOG(f"Found {len(nodes)} directives in {len(state.parsedSource)} segments", level=2)
    except SyntaxError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        sys.exit(1)
    return state


def document_compile(inputstate: ProgramState) -> ProgramState:
    """
    Render every directive and write the output document.

    Returns:
        ProgramState with added field:
            - compileResult: Dict containing:
                - status: bool
                - output_file: str
                - card_count: int (cards rendered)
                - error_count: int (directives rejected as hidden error nodes)

    Exits:
        1 if parsedSource is None or rendering fails
    """

    state = inputstate.copy()

    LOG("Rendering directives...", level=1)

    if state.parsedSource is None:
        print("Error: No parsed source available", file=sys.stderr)
        sys.exit(1)

    try:
        compiler = Compiler(
            segments=state.parsedSource,
            output_dir=str(state.outputTargetdir),
            output_format=state.outputFormat,
            layout=state.layout,
            id_scheme=state.idScheme,
            source_name=state.inputSourceFile.name,
            source_text=state.sourceText,
        )
        state.compileResult = compiler.compile()
        LOG(f"Rendering complete: {state.compileResult['card_count']} cards", level=2)
    except Exception as e:
        print(f"Compilation error: {e}", file=sys.stderr)
        if state.verbosity >= 3:
            traceback.print_exc()
        sys.exit(1)

    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display rendering results to the user.

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if compileResult is None
    """
    state: ProgramState = inputstate.copy()
    if not state.compileResult:
        print("Error: Compilation failed", file=sys.stderr)
        sys.exit(1)

    LOG("\n✓ Rendering successful!", level=1)
    LOG(f"  Output: {state.compileResult['output_file']}", level=1)
    LOG(f"  Cards: {state.compileResult['card_count']}", level=1)
    if state.compileResult['error_count']:
        LOG(f"  Invalid directives (rendered hidden): {state.compileResult['error_count']}", level=1)
    return state


@chris_plugin(
    parser=parser,
    title="bangumicard - Bangumi profile cards for markdown",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - render bangumi directives in a markdown file.

    Orchestrates the pipeline:
        1. env_check: Validate paths and environment
        2. source_parse: Read and scan the markdown for directives
        3. document_compile: Render cards and write the output
        4. results_report: Display results to user

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    state_connectToLogger(state)

    pipeline(state, env_check, source_parse, document_compile, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
