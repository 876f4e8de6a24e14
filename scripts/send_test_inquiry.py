#!/usr/bin/env python3
"""
Dev helper: submit a test inquiry to the local backend.

Builds a contact-form payload, optionally attaches a real file (encoded as a
data-URL, the way the browser form does it), and POST-s it to
/api/inquiries.

Usage
-----
# Basic — no attachment, targeting localhost:8000
python scripts/send_test_inquiry.py

# Attach a file using the single-attachment shape
python scripts/send_test_inquiry.py --file brief.pdf

# Attach files using the array shape (up to 5 are relayed)
python scripts/send_test_inquiry.py --file a.pdf --file b.png --array

# Custom submitter / package
python scripts/send_test_inquiry.py --email me@example.com --package Premium

# Print the payload without sending it
python scripts/send_test_inquiry.py --file brief.pdf --dry-run

Environment / .env
------------------
The endpoint needs MAIL_API_KEY configured on the *server* side. This script
loads .env from the project root and backend/ only so that the defaults
below can be overridden there:

INQUIRY_TEST_URL   Backend base URL (default: http://localhost:8000).
"""

import argparse
import base64
import json
import mimetypes
import os
import sys
import textwrap
from pathlib import Path

import httpx
from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Payload builders
# ---------------------------------------------------------------------------

def _to_data_url(path: Path) -> tuple[str, str]:
    """Return (data_url, content_type) for a file on disk."""
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    encoded = base64.b64encode(path.read_bytes()).decode()
    return f"data:{content_type};base64,{encoded}", content_type


def _build_payload(
    name: str,
    email: str,
    package: str,
    message: str,
    files: list[Path],
    array_shape: bool,
) -> dict:
    """
    Build a contact-form body.

    Single shape: attachment + attachmentName + attachmentType (first file only)
    Array shape:  attachments[] — {filename, content, type}
    """
    payload: dict = {
        "name": name,
        "email": email,
        "package": package,
        "message": message,
    }
    if not files:
        return payload

    if array_shape:
        payload["attachments"] = []
        for path in files:
            data_url, content_type = _to_data_url(path)
            payload["attachments"].append(
                {"filename": path.name, "content": data_url, "type": content_type}
            )
    else:
        data_url, content_type = _to_data_url(files[0])
        payload["attachment"] = data_url
        payload["attachmentName"] = files[0].name
        payload["attachmentType"] = content_type

    return payload


def _redacted(payload: dict) -> dict:
    """Copy of payload with base64 blobs replaced by their length."""
    display = dict(payload)
    if "attachment" in display:
        display["attachment"] = f"<data-url, {len(display['attachment'])} chars>"
    if "attachments" in display:
        display["attachments"] = [
            {**a, "content": f"<data-url, {len(a['content'])} chars>"}
            for a in display["attachments"]
        ]
    return display


# ---------------------------------------------------------------------------
# Pretty printer
# ---------------------------------------------------------------------------

def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 201 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    # Locate project root (scripts/ lives one level below the root)
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    load_dotenv(project_root / "backend" / ".env")

    parser = argparse.ArgumentParser(
        prog="send_test_inquiry.py",
        description="Submit a test contact-form inquiry to the backend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_inquiry.py
              python scripts/send_test_inquiry.py --file brief.pdf
              python scripts/send_test_inquiry.py --file a.pdf --file b.png --array
              python scripts/send_test_inquiry.py --url http://localhost:8001
        """),
    )
    parser.add_argument(
        "--url",
        default=os.getenv("INQUIRY_TEST_URL", "http://localhost:8000"),
        help="Backend base URL (default: http://localhost:8000)",
    )
    parser.add_argument("--name", default="Test User", help='Submitter name (default: "Test User")')
    parser.add_argument(
        "--email",
        default="test@example.com",
        help="Submitter email; receives the confirmation (default: test@example.com)",
    )
    parser.add_argument("--package", default="Base", help="Chosen package (default: Base)")
    parser.add_argument(
        "--message",
        default="This is a test inquiry sent from scripts/send_test_inquiry.py.",
        help="Message body",
    )
    parser.add_argument(
        "--file",
        action="append",
        default=[],
        metavar="PATH",
        help="File to attach. Repeat for several files (array shape only).",
    )
    parser.add_argument(
        "--array",
        action="store_true",
        help="Send attachments in the attachments[] array shape.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the payload JSON without sending it.",
    )

    args = parser.parse_args()

    files = [Path(f) for f in args.file]
    for path in files:
        if not path.exists():
            print(f"ERROR: File not found: {path}", file=sys.stderr)
            return 1
    if len(files) > 1 and not args.array:
        print("NOTE: several --file given without --array; only the first is sent.")

    payload = _build_payload(
        name=args.name,
        email=args.email,
        package=args.package,
        message=args.message,
        files=files,
        array_shape=args.array,
    )

    endpoint = f"{args.url.rstrip('/')}/api/inquiries"

    print(f"Endpoint  : {endpoint}")
    print(f"Email     : {args.email}")
    print(f"Package   : {args.package}")
    print(f"Files     : {', '.join(p.name for p in files) or '(none)'}")

    if args.dry_run:
        print("\n[DRY RUN] Payload:")
        print(json.dumps(_redacted(payload), indent=2))
        return 0

    try:
        response = httpx.post(endpoint, json=payload, timeout=30)
    except httpx.ConnectError:
        print(
            f"\nERROR: Could not connect to {endpoint}\n"
            "Is the backend running? Start it with:\n"
            "  cd backend && uvicorn app.main:app --reload",
            file=sys.stderr,
        )
        return 1
    except httpx.HTTPError as exc:
        print(f"\nERROR: {exc}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 201 else 1


if __name__ == "__main__":
    sys.exit(main())
