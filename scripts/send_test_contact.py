#!/usr/bin/env python3
"""
Dev helper: post a test contact-form submission to the local backend.

Builds a submission (JSON by default, multipart when files are attached),
POST-s it to /api/contact without following the redirect, and prints the
redirect target so you can see the submitted / lang / error parameters.

Usage
-----
# Basic JSON submission in English
python scripts/send_test_contact.py --lang en

# Attach files (switches to multipart/form-data)
python scripts/send_test_contact.py --file brochure.pdf --file notes.txt

# Attach through the legacy single-file field
python scripts/send_test_contact.py --legacy-file old_form.pdf

# Skip the auto-reply (no visitor email)
python scripts/send_test_contact.py --email ""

# Target a different backend URL
python scripts/send_test_contact.py --url http://staging.example.com
"""

import argparse
import json
import mimetypes
import sys
import textwrap
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import httpx


def _build_fields(args: argparse.Namespace) -> dict[str, str]:
    return {
        "name": args.name,
        "email": args.email,
        "phone": args.phone,
        "company": args.company,
        "subject": args.subject,
        "summary": args.summary,
        "preferredContact": "email",
        "consent": "yes",
        "lang": args.lang,
        "timezone": "Asia/Tokyo",
    }


def _file_part(path: Path) -> tuple[str, bytes, str]:
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return (path.name, path.read_bytes(), content_type)


def _print_response(response: httpx.Response) -> int:
    location = response.headers.get("location")
    print(f"\nHTTP {response.status_code}")
    if not location:
        print(response.text)
        return 1

    print(f"Location: {location}")
    params = {k: v[0] for k, v in parse_qs(urlparse(location).query).items()}
    print(json.dumps(params, indent=2, ensure_ascii=False))
    return 0 if params.get("submitted") == "1" else 1


def main() -> int:
    parser = argparse.ArgumentParser(
        prog="send_test_contact.py",
        description="Send a test contact-form submission to the backend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_contact.py
              python scripts/send_test_contact.py --lang zh --file brochure.pdf
              python scripts/send_test_contact.py --url http://localhost:8000
        """),
    )
    parser.add_argument("--url", default="http://localhost:8000", help="Backend base URL")
    parser.add_argument("--lang", default="jp", help="Site language: jp, zh or en (default: jp)")
    parser.add_argument("--name", default="Jane Doe")
    parser.add_argument("--email", default="jane@example.com", help='Visitor email; "" skips the auto-reply')
    parser.add_argument("--phone", default="123")
    parser.add_argument("--company", default="Example Co.")
    parser.add_argument("--subject", default="Test inquiry")
    parser.add_argument("--summary", default="This is a test submission.")
    parser.add_argument(
        "--file", action="append", default=[], metavar="PATH",
        help="Attach a file under the 'attachments' field (repeatable)",
    )
    parser.add_argument(
        "--legacy-file", action="append", default=[], metavar="PATH",
        help="Attach a file under the legacy 'attachment' field (repeatable)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print the fields without sending")

    args = parser.parse_args()

    fields = _build_fields(args)
    paths = [("attachments", Path(p)) for p in args.file]
    paths += [("attachment", Path(p)) for p in args.legacy_file]

    for _, path in paths:
        if not path.exists():
            print(f"ERROR: File not found: {path}", file=sys.stderr)
            return 1

    endpoint = f"{args.url.rstrip('/')}/api/contact"
    print(f"Endpoint : {endpoint}")
    print(f"Encoding : {'multipart/form-data' if paths else 'application/json'}")
    for field_name, path in paths:
        print(f"File     : {field_name} <- {path}")

    if args.dry_run:
        print("\n[DRY RUN] Fields:")
        print(json.dumps(fields, indent=2, ensure_ascii=False))
        return 0

    try:
        with httpx.Client(follow_redirects=False, timeout=30) as client:
            if paths:
                files = [(field_name, _file_part(path)) for field_name, path in paths]
                response = client.post(endpoint, data=fields, files=files)
            else:
                response = client.post(endpoint, json=fields)
    except httpx.HTTPError as e:
        print(f"\nERROR: Request failed: {e}", file=sys.stderr)
        return 1

    return _print_response(response)


if __name__ == "__main__":
    sys.exit(main())
