# residency_forms/storage/template_store.py
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from residency_forms import settings
from residency_forms.errors import TemplateFetchError

logger = logging.getLogger(__name__)


class TemplateStore(Protocol):
    def fetch(self, ref: str) -> bytes:
        ...


class LocalTemplateStore:
    """Templates shipped on disk: <root>/<term>/<file>.pdf"""

    def __init__(self, root: Path):
        self.root = Path(root)

    def fetch(self, ref: str) -> bytes:
        path = (self.root / ref).resolve()
        root = self.root.resolve()
        if root not in path.parents:
            raise TemplateFetchError(f"Template reference escapes template dir: {ref!r}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise TemplateFetchError(f"Could not read template {ref!r}: {e}") from e


class S3TemplateStore:
    def __init__(self, bucket: str | None = None, prefix: str | None = None):
        self.bucket = bucket or os.getenv("S3_BUCKET")
        if not self.bucket:
            raise RuntimeError("S3_BUCKET not set in .env")

        self.prefix = settings.template_s3_prefix() if prefix is None else prefix

        region = os.getenv("AWS_REGION") or "us-east-1"
        profile = os.getenv("AWS_PROFILE")

        session = boto3.Session(profile_name=profile) if profile else boto3.Session()

        self.s3 = session.client(
            "s3",
            region_name=region,
            config=Config(signature_version="s3v4"),
        )

    def key_for(self, ref: str) -> str:
        return f"{self.prefix}{ref}"

    def fetch(self, ref: str) -> bytes:
        key = self.key_for(ref)
        try:
            resp = self.s3.get_object(Bucket=self.bucket, Key=key)
            return resp["Body"].read()
        except (ClientError, BotoCoreError) as e:
            raise TemplateFetchError(f"Could not fetch s3://{self.bucket}/{key}: {e}") from e


_store_singleton: TemplateStore | None = None


def get_template_store() -> TemplateStore:
    global _store_singleton
    if _store_singleton is None:
        source = settings.template_source()
        if source == "s3":
            _store_singleton = S3TemplateStore()
        elif source == "local":
            _store_singleton = LocalTemplateStore(settings.template_dir())
        else:
            raise RuntimeError(f"Unknown TEMPLATE_SOURCE={source!r} (expected 'local' or 's3')")
        logger.info("Template store: %s", type(_store_singleton).__name__)
    return _store_singleton


def reset_template_store() -> None:
    global _store_singleton
    _store_singleton = None
