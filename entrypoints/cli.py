# entrypoints/cli.py
import argparse
import logging
import os
import sys

from application.use_cases.conversation import GREETING
from core.domain.errors import ForensicsError
from core.domain.models import AnalysisFacet, ChatMessage
from infrastructure.adapters.chat_output.report_formatter import format_report
from infrastructure.di.container import build_container

logger = logging.getLogger(__name__)

EXIT_COMMANDS = ["exit", "quit", "bye"]


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Forensic AI code review for a zipped project')
    parser.add_argument('archive', type=str, help='Path to the project .zip file')
    parser.add_argument('--issue', default='', help='Describe the issue you are facing')
    parser.add_argument('--facets', nargs='+', choices=[facet.value for facet in AnalysisFacet],
                        default=[facet.value for facet in AnalysisFacet],
                        help='Analysis types to run (default: all)')
    parser.add_argument('--fix', action='store_true', help='Generate fixed files after the analysis')
    parser.add_argument('--output', default='.', help='Directory for the downloaded archive')
    parser.add_argument('--chat', action='store_true', help='Start a follow-up conversation')
    parser.add_argument('--provider', choices=['gemini', 'huggingface'], default=None)
    parser.add_argument('--model', dest='model_name', default=None, help='Model name override')
    parser.add_argument('--log-level', default='WARNING')
    return parser.parse_args(argv)


def chat_loop(container, conversation_uc, handle):
    output_port = container.chat_output()
    transcript = [ChatMessage(role="model", content=GREETING)]
    output_port.display_message(f"\nAssistant: {transcript[0].content}")

    while True:
        try:
            user_input = output_port.get_user_input("\nYou: ")
        except (EOFError, KeyboardInterrupt):
            break
        if user_input.lower().strip() in EXIT_COMMANDS:
            output_port.display_message("Goodbye!")
            break
        if not user_input.strip():
            continue

        transcript.append(ChatMessage(role="user", content=user_input))
        reply = ""
        output_port.display_message("\nAssistant: ")
        try:
            for chunk in conversation_uc.send_message(handle, user_input):
                reply += chunk
                output_port.stream_chunk(chunk)
            output_port.complete()
        except ForensicsError as e:
            reply = f"Sorry, I ran into an error: {e}"
            output_port.error(str(e))
        transcript.append(ChatMessage(role="model", content=reply))
    return transcript


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        container = build_container({
            "context": "cli",
            "model_provider": args.provider,
            "model_name": args.model_name,
        })
        container.model_client()

        file_handler = container.file_handler()
        output_port = container.chat_output()
        archive = container.archive()

        files = archive.extract(file_handler.read_bytes(args.archive))
        output_port.display_message(f"\nAnalyzing {len(files)} files from {args.archive}...\n")

        facets = [AnalysisFacet(value) for value in args.facets]
        report = container.analysis_uc().analyze(files, args.issue, facets)
        output_port.display_message(format_report(report))

        if args.fix:
            output_port.display_message("\nApplying fixes and generating new codebase...")
            fixed_files = container.code_fix_uc().generate_fixes(files, report)
            data, name = archive.create(fixed_files, f"fixed-{os.path.basename(args.archive)}")
            path = file_handler.save_archive(args.output, name, data)
            if fixed_files:
                output_port.display_message(f"{len(fixed_files)} file(s) modified. Archive written to {path}")
            else:
                output_port.display_message(f"No code changes were necessary. Summary written to {path}")

        if args.chat:
            conversation_uc = container.conversation_uc()
            handle = conversation_uc.start_conversation(files, args.issue)
            chat_loop(container, conversation_uc, handle)

    except (ForensicsError, OSError) as e:
        logger.debug("CLI run failed", exc_info=True)
        print(f"Error: {str(e)}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
