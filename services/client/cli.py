"""Command-line client for the SOS server."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import httpx

from core.exceptions import ClientError
from services.client.client import SosClient


def _put(client: SosClient, args: argparse.Namespace) -> None:
    with args.file.open("rb") as fp:
        client.put_object(args.bucket, args.key, fp)


def _get(client: SosClient, args: argparse.Namespace) -> None:
    client.download_object(args.bucket, args.key, args.file)


def _mk_bucket(client: SosClient, args: argparse.Namespace) -> None:
    client.create_bucket(args.bucket)


def _ls_buckets(client: SosClient, args: argparse.Namespace) -> None:
    for name in client.list_buckets():
        print(name)


def _ls_objects(client: SosClient, args: argparse.Namespace) -> None:
    for key in client.list_objects(args.bucket):
        print(key)


def _rm_bucket(client: SosClient, args: argparse.Namespace) -> None:
    client.delete_bucket(args.bucket)


def _rm_object(client: SosClient, args: argparse.Namespace) -> None:
    client.delete_object(args.bucket, args.key)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sos", description="Simple Object Storage CLI")
    parser.add_argument("--endpoint", default="http://localhost:8080", help="SOS server endpoint")
    commands = parser.add_subparsers(dest="command", metavar="<command>")

    put = commands.add_parser("put", help="Upload a file")
    put.add_argument("bucket")
    put.add_argument("key")
    put.add_argument("file", type=Path)
    put.set_defaults(handler=_put)

    get = commands.add_parser("get", help="Download an object")
    get.add_argument("bucket")
    get.add_argument("key")
    get.add_argument("file", type=Path)
    get.set_defaults(handler=_get)

    mk_bucket = commands.add_parser("mk-bucket", aliases=["mkBucket"], help="Create a bucket")
    mk_bucket.add_argument("bucket")
    mk_bucket.set_defaults(handler=_mk_bucket)

    ls_buckets = commands.add_parser("ls-buckets", aliases=["lsBuckets"], help="List all buckets")
    ls_buckets.set_defaults(handler=_ls_buckets)

    ls_objects = commands.add_parser("ls-objects", aliases=["lsObjects"], help="List all objects in a bucket")
    ls_objects.add_argument("bucket")
    ls_objects.set_defaults(handler=_ls_objects)

    rm_bucket = commands.add_parser("rm-bucket", aliases=["rmBucket"], help="Delete a bucket")
    rm_bucket.add_argument("bucket")
    rm_bucket.set_defaults(handler=_rm_bucket)

    rm_object = commands.add_parser("rm-object", aliases=["rmObject"], help="Delete an object")
    rm_object.add_argument("bucket")
    rm_object.add_argument("key")
    rm_object.set_defaults(handler=_rm_object)

    return parser


def main(argv: list[str] | None = None, client: SosClient | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 0

    owned = client is None
    client = client or SosClient(args.endpoint)
    try:
        handler(client, args)
    except (ClientError, httpx.HTTPError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        if owned:
            client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
