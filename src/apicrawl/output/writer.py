# src/apicrawl/output/writer.py
from collections import Counter
from pathlib import Path
from typing import List, Optional

import logfire

from .builder import serialize
from ..config.settings import OutputFormat
from ..models.crawl_result_model import CrawlResult

_PREVIEW_PARENTS = 5
_PREVIEW_CHILDREN = 3
_PREVIEW_ERRORS = 5


def save_results(
    result: CrawlResult,
    file_path: Path,
    output_format: OutputFormat = OutputFormat.FLAT
) -> Path:
    """
    Write the result artifact, creating parent directories as needed.

    Raises:
        OSError: if the file cannot be written
    """
    path = Path(file_path)
    with logfire.span('save_results', path=str(path), format=OutputFormat(output_format).value):
        path.parent.mkdir(parents=True, exist_ok=True)
        content = serialize(result, output_format)
        path.write_text(content, encoding="utf-8")
        logfire.info("Results saved", path=str(path), bytes=len(content))
    return path


def format_summary(result: CrawlResult) -> str:
    """Human-readable run summary for the console."""
    stats = result.statistics
    lines: List[str] = [
        "API Crawl Summary",
        "=================",
        f"Seed URL: {result.seed_url}",
        f"Started at: {result.started_at:%Y-%m-%d %H:%M:%S} UTC",
        f"Completed at: {result.completed_at:%Y-%m-%d %H:%M:%S} UTC",
        "",
        "Statistics:",
        f"  URLs processed: {stats.urls_processed}",
        f"  Successful requests: {stats.successful_requests}",
        f"  Failed requests: {stats.failed_requests}",
        f"  URLs skipped: {stats.urls_skipped}",
        f"  Max depth reached: {stats.max_depth_reached}",
        f"  Total time: {stats.total_time_ms}ms",
        "",
        "Discovered endpoints:",
        f"  Total endpoints: {len(result.records)}",
        f"  Distinct hosts: {len(result.discovered_hosts())}",
    ]

    by_parent = result.children_by_parent()
    lines.append(f"  Parent URLs: {len(by_parent)}")

    depth_counts = Counter(record.depth for record in result.records)
    if depth_counts:
        lines.append("  Endpoints by depth:")
        for depth in sorted(depth_counts):
            lines.append(f"    depth {depth}: {depth_counts[depth]}")

    if by_parent:
        lines.extend(["", "Hierarchy:"])
        parents = sorted(by_parent)
        for index, parent in enumerate(parents[:_PREVIEW_PARENTS], start=1):
            children = by_parent[parent]
            lines.append(f"  {index}. {parent} -> {len(children)} endpoints")
            for child in children[:_PREVIEW_CHILDREN]:
                lines.append(f"     - {child.address}")
            if len(children) > _PREVIEW_CHILDREN:
                lines.append(f"     ... and {len(children) - _PREVIEW_CHILDREN} more")
        if len(parents) > _PREVIEW_PARENTS:
            lines.append(f"  ... and {len(parents) - _PREVIEW_PARENTS} more parent URLs")

    if stats.errors:
        lines.extend(["", f"Errors ({len(stats.errors)}):"])
        for index, error in enumerate(stats.errors[:_PREVIEW_ERRORS], start=1):
            lines.append(f"  {index}. {error}")
        if len(stats.errors) > _PREVIEW_ERRORS:
            lines.append(f"  ... and {len(stats.errors) - _PREVIEW_ERRORS} more errors")

    return "\n".join(lines)


def format_endpoints(result: CrawlResult, limit: Optional[int] = None) -> str:
    """Detailed listing of the first ``limit`` records."""
    records = result.records if limit is None else result.records[:limit]
    blocks: List[str] = []
    for index, record in enumerate(records, start=1):
        block = [f"{index}. {record.address}"]
        if record.relation:
            block.append(f"   Relation: {record.relation}")
        if record.method:
            block.append(f"   Method: {record.method}")
        if record.content_type:
            block.append(f"   Type: {record.content_type}")
        if record.title:
            block.append(f"   Title: {record.title}")
        block.append(f"   Depth: {record.depth}")
        if record.parent_address:
            block.append(f"   Parent: {record.parent_address}")
        if record.metadata:
            block.append("   Metadata:")
            block.extend(f"     {key}: {value}" for key, value in record.metadata.items())
        blocks.append("\n".join(block))

    text = "\n\n".join(blocks)
    hidden = len(result.records) - len(records)
    if hidden > 0:
        text += f"\n\n... and {hidden} more endpoints"
    return text


def generate_text_report(result: CrawlResult) -> str:
    """Plain-text report: totals, success rate, endpoints per relation."""
    stats = result.statistics
    lines = [
        "API Crawl Report",
        "================",
        "",
        f"Seed URL: {result.seed_url}",
        f"Duration: {stats.total_time_ms}ms",
        f"URLs Processed: {stats.urls_processed}",
        f"Endpoints Found: {len(result.records)}",
        f"Success Rate: {stats.success_rate:.1f}%",
        "",
        "Endpoints by Relation Type:",
        "---------------------------",
    ]
    relation_counts = Counter(record.relation or "(none)" for record in result.records)
    for relation, count in sorted(relation_counts.items(), key=lambda kv: (-kv[1], kv[0])):
        lines.append(f"  {relation}: {count}")

    if stats.errors:
        lines.extend(["", "Errors:", "-------"])
        lines.extend(f"  - {error}" for error in stats.errors)

    return "\n".join(lines) + "\n"
