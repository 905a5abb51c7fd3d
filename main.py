import argparse
import asyncio
import logging
import sys

from evstudio.core.constants import DEFAULT_GROUP_ID, TraceRequest
from evstudio.core.enums import ReferenceKind
from evstudio.core.message import render_message
from evstudio.core.references import collect_references
from evstudio.core.workspace import Workspace, WorkspaceSettings
from evstudio.utils.logger import setup_logger
from evstudio.utils.settings_store import SettingsStore


def build_parser():
    parser = argparse.ArgumentParser(prog="evstudio",
                                     description="Event script and message asset tools")
    parser.add_argument("--project", help="Project root (overrides settings)")
    parser.add_argument("--settings", default="settings.json", help="Settings JSON file")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("summary", help="Load everything and print counts")

    p = sub.add_parser("messages", help="Print decoded messages of a file")
    p.add_argument("file")
    p.add_argument("label", nargs="?")
    p.add_argument("--raw", action="store_true", help="Keep {n}/{r}/{f} tokens")

    p = sub.add_parser("trace", help="Find the writer of a placeholder")
    p.add_argument("script")
    p.add_argument("line", type=int, help="1-based line the message is shown at")
    p.add_argument("tag", type=int)
    p.add_argument("group", type=int, nargs="?", default=DEFAULT_GROUP_ID)

    p = sub.add_parser("refs", help="List references to a label or word")
    p.add_argument("word")
    return parser


async def run(args, workspace):
    await workspace.refresh()

    if args.command == "summary":
        for line in workspace.summary():
            print(line)
        return 0

    if args.command == "messages":
        labels = workspace.messages.labels(args.file)
        if not labels:
            print(f"No messages for {args.file}", file=sys.stderr)
            return 1
        selected = [args.label.lower()] if args.label else sorted(labels)
        for label in selected:
            message = labels.get(label)
            if message is None:
                print(f"No label {label} in {args.file}", file=sys.stderr)
                return 1
            print(f"{label}: {render_message(message, keep_macros=args.raw)}")
        return 0

    if args.command == "trace":
        result = await workspace.tracer.trace(
            TraceRequest(args.script, args.line - 1, args.tag, args.group))
        if not result.resolved:
            print(f"[{args.tag}] unresolved ({result.outcome.value}, {result.steps} steps)")
            return 1
        via = " <- ".join(result.label_path) or "same block"
        print(f"{result.command} at {result.file}:{result.line + 1} via {via}")
        return 0

    if args.command == "refs":
        report = await collect_references(workspace.index.files, args.word)
        for kind in ReferenceKind:
            for ref in report.of_kind(kind):
                print(f"{kind.value:<10} {ref.file}:{ref.line + 1}: {ref.text}")
        if not len(report):
            print("No references found")
        return 0

    return 2


def main(argv=None):
    args = build_parser().parse_args(argv)
    # Root logger: class-named loggers live outside the package hierarchy
    logger = setup_logger(None, logging.DEBUG if args.verbose else logging.INFO)

    settings = SettingsStore(args.settings).load()
    if args.project:
        settings["project_path"] = args.project

    workspace = Workspace(WorkspaceSettings.from_dict(settings))
    workspace.log_message.connect(lambda level, msg: logger.log(
        logging.getLevelName(level.upper()), msg))
    return asyncio.run(run(args, workspace))


if __name__ == "__main__":
    sys.exit(main())
