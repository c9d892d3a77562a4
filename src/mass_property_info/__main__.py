import argparse
import asyncio
import json
import logging
import sys

from .config import get_settings
from .errors import PropertyLookupError
from .logs import configure_logging
from .schema import PropertyQuery
from .session import PropertyInfoService


def build_parser():
    parser = argparse.ArgumentParser(
        description="Massachusetts property information lookup",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (DEBUG, INFO, etc.)",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        help="Emit log records as JSON lines on stderr",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    lookup = sub.add_parser("lookup", help="Fetch one property record")
    lookup.add_argument("--city", required=True, help="City or town name")
    lookup.add_argument("--street", required=True, help="Street name")
    lookup.add_argument("--number", required=True, help="Address number")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=3001)
    return parser


def run_lookup(args, service=None):
    try:
        query = PropertyQuery.from_payload(
            {"city": args.city, "streetName": args.street, "addressNumber": args.number}
        )
        service = service or PropertyInfoService()
        record = asyncio.run(service.fetch(query))
    except PropertyLookupError as exc:
        print(json.dumps(exc.to_payload()))
        return 1
    except Exception as exc:
        logging.getLogger("mpi.cli").exception("property lookup crashed")
        wrapped = PropertyLookupError(str(exc) or "Failed to fetch property information")
        print(json.dumps(wrapped.to_payload()))
        return 1
    print(json.dumps({"success": True, "data": record.to_json_dict()}))
    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level, json_lines=args.log_json)

    if args.command == "serve":
        import uvicorn

        logging.getLogger("mpi.startup").info("serving on %s:%s", args.host, args.port)
        uvicorn.run("mass_property_info.api.app:app", host=args.host, port=args.port)
        return 0

    return run_lookup(args)


if __name__ == "__main__":
    sys.exit(main())
