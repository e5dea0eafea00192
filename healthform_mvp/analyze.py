# Health-form profile CLI
import argparse
import json
import logging
import os
import pathlib
import sys

from healthform.config import Settings
from healthform.errors import (
    InvalidInputError,
    MalformedResponseError,
    ProfilePipelineError,
    SchemaViolationError,
    UpstreamUnavailableError,
)
from healthform.intake import from_image_file, from_text
from healthform.pipeline import ProfileAnalyzer
from healthform.render import render_text

logger = logging.getLogger("analyze")

EXIT_CONFIG = 6

EXIT_CODES = (
    (InvalidInputError, 2),
    (UpstreamUnavailableError, 3),
    (MalformedResponseError, 4),
    (SchemaViolationError, 5),
)


def exit_code_for(err: ProfilePipelineError) -> int:
    for cls, code in EXIT_CODES:
        if isinstance(err, cls):
            return code
    return 1


def build_request(args: argparse.Namespace, s: Settings):
    if args.image:
        return from_image_file(args.image, media_type=args.media_type, max_bytes=s.max_image_bytes)
    if args.text_file:
        try:
            text = pathlib.Path(args.text_file).read_text(encoding="utf-8")
        except OSError as exc:
            raise InvalidInputError(f"Could not read text file {args.text_file}: {exc}")
        return from_text(text)
    return from_text(args.text)


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Analyze a lifestyle survey (text or form image).")
    src = ap.add_mutually_exclusive_group(required=True)
    src.add_argument("--text", help="Survey answers as free text or loose key/value text")
    src.add_argument("--text-file", help="Read survey answers from a UTF-8 text file")
    src.add_argument("--image", help="Photo or scan of the survey form")
    ap.add_argument("--media-type", help="Declared image media type (guessed from the file name if omitted)")
    ap.add_argument("--format", choices=["json", "text"], default="text", help="Output format")
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if os.getenv("OBS", "") == "1" else logging.WARNING,
        format="[%(name)s] %(message)s",
    )

    try:
        s = Settings.from_env()
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    try:
        request = build_request(args, s)
        result = ProfileAnalyzer.from_settings(s).analyze(request)
    except ProfilePipelineError as e:
        logger.info("failed: %s", e)
        print(f"Error: {e.user_message}", file=sys.stderr)
        return exit_code_for(e)

    if args.format == "json":
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    else:
        print(render_text(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
