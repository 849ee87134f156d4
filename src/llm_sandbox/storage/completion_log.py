"""
Append-only completion log.

Every completion attempt (success or failure) becomes one JSON line in a single
file. Reads load the whole file and reverse it; there is no index.
"""

import random
import string
import time
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from llm_sandbox.models.completion import LogRecord, LogStats, UsageSnapshot
from llm_sandbox.utils.logging import get_logger

logger = get_logger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id() -> str:
    """
    Generate a record id of the form ``<epoch-millis>-<6 base36 chars>``.

    Not collision-free; two records written in the same millisecond share a
    prefix and rely on the random suffix.
    """
    suffix = "".join(random.choices(_ID_ALPHABET, k=6))
    return f"{int(time.time() * 1000)}-{suffix}"


class CompletionLogger:
    """Writes and reads completion records in a JSONL file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def log(
        self,
        *,
        model: str,
        prompt: str,
        max_tokens: int,
        content: str,
        usage: UsageSnapshot | None = None,
        duration_ms: int = 0,
        template: str | None = None,
        system_prompt: str | None = None,
        reasoning_content: str | None = None,
        error: str | None = None,
    ) -> LogRecord:
        """
        Append one record and return it.

        Optional fields left as None are omitted from the JSON line.
        """
        record = LogRecord(
            id=generate_id(),
            timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            model=model,
            template=template,
            prompt=prompt,
            system_prompt=system_prompt,
            max_tokens=max_tokens,
            content=content,
            reasoning_content=reasoning_content or None,
            usage=usage or UsageSnapshot(),
            duration_ms=duration_ms,
            error=error,
        )

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(record.model_dump_json(by_alias=True, exclude_none=True) + "\n")

        logger.info(
            "Completion logged",
            extra={
                "record_id": record.id,
                "model": record.model,
                "total_tokens": record.usage.total_tokens,
                "duration_ms": record.duration_ms,
                "failed": record.error is not None,
            },
        )
        return record

    def read(self, limit: int | None = None) -> list[LogRecord]:
        """
        Return records, most recently appended first.

        Corrupt lines are skipped. A limit of None or 0 returns everything.
        """
        if not self.path.exists():
            return []

        records = []
        for line_number, line in enumerate(
            self.path.read_text(encoding="utf-8").splitlines(), start=1
        ):
            if not line.strip():
                continue
            try:
                records.append(LogRecord.model_validate_json(line))
            except ValidationError:
                logger.warning(
                    "Skipping unreadable log line",
                    extra={"path": str(self.path), "line_number": line_number},
                )

        records.reverse()
        if limit:
            return records[:limit]
        return records

    def stats(self) -> LogStats:
        records = self.read()
        if not records:
            return LogStats()

        total_tokens = sum(r.usage.total_tokens for r in records)
        total_duration = sum(r.duration_ms for r in records)

        by_template: dict[str, int] = {}
        for record in records:
            key = record.template or "(custom)"
            by_template[key] = by_template.get(key, 0) + 1

        return LogStats(
            total_requests=len(records),
            total_tokens=total_tokens,
            avg_duration_ms=round(total_duration / len(records)),
            by_template=by_template,
        )
