"""
Command-line entry point.

This is the process boundary: .env and environment variables are read here,
merged under the command-line flags, validated into a ReportConfig and
handed to the export pipeline. Exit status is 0 on success, 1 on a failed
run and 2 on invalid configuration.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from dotenv import load_dotenv

from .config import DEFAULT_BODY, DEFAULT_SENDER, DEFAULT_TITLE, build_config
from .errors import ConfigurationError, DeliveryError, ReportError
from .export.orchestrator import run
from .logging_setup import setup_logging

logger = logging.getLogger("metabase_reporter.cli")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(env.get(name, ""))
    except ValueError:
        return default


def _env_bool(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() == "true"


def build_parser(env: Mapping[str, str]) -> argparse.ArgumentParser:
    """Argument parser whose defaults come from `env`."""
    p = argparse.ArgumentParser(
        prog="metabase-reporter",
        description="Export a Metabase dashboard to a branded PDF and optionally email it.",
    )
    p.add_argument("-u", "--url", default=env.get("METABASE_URL", ""), help="Metabase dashboard public URL")
    p.add_argument("-t", "--title", default=env.get("REPORT_TITLE") or DEFAULT_TITLE, help="Report title")
    p.add_argument("--date", default=env.get("REPORT_DATE") or None, help="Custom date to display")
    p.add_argument("-l", "--logo", default=env.get("LOGO_PATH") or None, help="Path to logo image")
    p.add_argument("-w", "--waittime", type=int, default=_env_int(env, "WAIT_TIME", 3000),
                   help="Time to wait for dashboard to render (ms)")

    mail = p.add_argument_group("email")
    mail.add_argument("-e", "--email", action="store_true", default=_env_bool(env, "SEND_EMAIL"),
                      help="Send PDF by email")
    mail.add_argument("--from", dest="sender", default=env.get("EMAIL_FROM") or DEFAULT_SENDER,
                      help="Email sender address")
    mail.add_argument("--to", default=env.get("EMAIL_TO", ""), help="Email recipient(s), comma-separated")
    mail.add_argument("--subject", default=env.get("EMAIL_SUBJECT") or None, help="Email subject")
    mail.add_argument("--body", default=env.get("EMAIL_BODY") or DEFAULT_BODY, help="Email body text")
    mail.add_argument("--smtphost", default=env.get("SMTP_HOST") or "localhost", help="SMTP server hostname or IP")
    mail.add_argument("--smtpport", type=int, default=_env_int(env, "SMTP_PORT", 25), help="SMTP server port")
    mail.add_argument("--delete-after-email", action="store_true",
                      default=_env_bool(env, "DELETE_AFTER_EMAIL"),
                      help="Delete the PDF after a successful send")

    runtime = p.add_argument_group("runtime")
    runtime.add_argument("--reports-dir", default=env.get("REPORTS_DIR") or os.getcwd(),
                         help="Directory for finished reports")
    runtime.add_argument("--download-dir",
                         default=str(Path(env.get("DOWNLOAD_DIR") or os.getcwd()) / "downloads"),
                         help="Browser download directory")
    runtime.add_argument("--chrome-binary", default=env.get("CHROME_BINARY") or None,
                         help="Chrome/Chromium executable")
    runtime.add_argument("--log-file", default=env.get("LOG_FILE", "metabase_reporter.log"),
                         help="JSON log file (empty to disable)")
    runtime.add_argument("--verbose", "-v", action="store_true", help="Debug output on the console")

    service = p.add_argument_group("service")
    service.add_argument("--serve", action="store_true", help="Run the HTTP export service instead")
    service.add_argument("--host", default=env.get("SERVICE_HOST", "0.0.0.0"))
    service.add_argument("--port", type=int, default=_env_int(env, "SERVICE_PORT", 8081))
    return p


def options_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Map parsed flags onto ReportConfig field names."""
    return {
        "url": args.url,
        "title": args.title,
        "date": args.date,
        "logo_path": args.logo,
        "wait_time_ms": args.waittime,
        "send_email": args.email,
        "email_from": args.sender,
        "email_to": args.to,
        "subject": args.subject,
        "body": args.body,
        "smtp_host": args.smtphost,
        "smtp_port": args.smtpport,
        "delete_after_email": args.delete_after_email,
        "reports_dir": args.reports_dir,
        "download_dir": args.download_dir,
        "chrome_binary": args.chrome_binary,
    }


def serve(options: Dict[str, Any], host: str, port: int) -> int:
    import uvicorn

    from .service import create_app

    defaults = {k: v for k, v in options.items() if k != "url" and v not in (None, "")}
    uvicorn.run(create_app(defaults), host=host, port=port)
    return 0


def main(argv: Optional[List[str]] = None, env: Optional[Mapping[str, str]] = None) -> int:
    if env is None:
        load_dotenv()
        env = os.environ

    args = build_parser(env).parse_args(argv)
    setup_logging(
        log_file=args.log_file or None,
        level=logging.DEBUG if args.verbose else logging.INFO,
    )
    options = options_from_args(args)

    if args.serve:
        return serve(options, args.host, args.port)

    try:
        config = build_config(**options)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    try:
        path = run(config)
    except DeliveryError as e:
        logger.error(f"Error sending report: {e}")
        if e.artifact_path:
            print(e.artifact_path)
        return 1
    except ReportError as e:
        logger.error(f"Error generating PDF report: {e}")
        return 1

    print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
