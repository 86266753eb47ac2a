"""Batch runner: stamp every URL in a list, one video at a time."""

import time
from dataclasses import dataclass, field

from stamper.video_pipeline import PipelineContext, VideoOutcome, process_video
from stamper.workspace import remove_if_empty


@dataclass
class BatchSummary:
    succeeded: list[VideoOutcome] = field(default_factory=list)
    failed: list[VideoOutcome] = field(default_factory=list)
    elapsed_s: float = 0.0

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)


def read_url_file(path: str) -> list[str]:
    """One URL per line; blank lines and lines starting with '#' are ignored."""
    with open(path, encoding="utf-8") as f:
        lines = [line.strip() for line in f]
    return [line for line in lines if line and not line.startswith("#")]


def run_batch(urls: list[str], ctx: PipelineContext) -> BatchSummary:
    """Process *urls* in order. A failed video never stops the batch."""
    t0 = time.time()
    summary = BatchSummary()

    for i, url in enumerate(urls):
        print(f"\n[Video {i + 1}/{len(urls)}]")
        outcome = process_video(url, ctx)
        if outcome.ok:
            summary.succeeded.append(outcome)
        else:
            summary.failed.append(outcome)

    remove_if_empty(ctx.download_dir)
    summary.elapsed_s = time.time() - t0
    return summary


def print_summary(summary: BatchSummary) -> None:
    print(f"\n{'=' * 70}")
    print("BATCH COMPLETE")
    print("=" * 70)
    print(f"  {len(summary.succeeded)}/{summary.total} videos processed in {summary.elapsed_s:.1f}s\n")

    for outcome in summary.succeeded:
        print(f"  OK    {outcome.output_path}")
    for outcome in summary.failed:
        print(f"  FAIL  {outcome.url}  ({outcome.reason})")

    if summary.succeeded:
        print("\nNext steps:")
        print("  1. Review the route JSONs in data/seed/routes/")
        print("  2. pnpm db:seed   (from repo root)")
        print("  3. pnpm dev       (start the app)")
