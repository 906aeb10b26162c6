#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

LABELS = ("news", "chat")


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _bootstrap_pythonpath() -> None:
    import sys

    src = _repo_root() / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))


_bootstrap_pythonpath()

from news_chat.config import get_settings  # noqa: E402
from news_chat.retrieval.news_context import NewsContextBuilder  # noqa: E402


@dataclass
class Sample:
    prompt: str
    expects_news: bool
    note: str = ""


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Measure how often the keyword trigger fetches news when it should.")
    parser.add_argument(
        "--input",
        default="eval/news_trigger_labeled.sample.jsonl",
        help="JSONL file with fields: prompt, gold (news/chat), optional note.",
    )
    parser.add_argument(
        "--output-md",
        default="",
        help="Markdown report path. Default: eval/reports/news_trigger_eval_<timestamp>.md",
    )
    parser.add_argument(
        "--output-json",
        default="",
        help="JSON report path. Default: eval/reports/news_trigger_eval_<timestamp>.json",
    )
    parser.add_argument("--limit", type=int, default=0, help="Limit evaluated samples (0 means all).")
    return parser.parse_args()


def load_samples(path: Path, limit: int) -> list[Sample]:
    samples: list[Sample] = []
    with path.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            raw = line.strip()
            if not raw:
                continue
            row = json.loads(raw)
            prompt = str(row.get("prompt", "")).strip()
            gold = str(row.get("gold", "")).strip().lower()
            note = str(row.get("note", "")).strip()
            if not prompt or gold not in LABELS:
                raise ValueError(f"Invalid sample at line {line_no}: prompt and gold in {LABELS} required")
            samples.append(Sample(prompt=prompt, expects_news=gold == "news", note=note))
            if limit > 0 and len(samples) >= limit:
                break
    if not samples:
        raise ValueError("No samples loaded.")
    return samples


def matched_keywords(prompt: str, keywords: list[str]) -> list[str]:
    lowered = prompt.lower()
    return [keyword for keyword in keywords if keyword.lower() in lowered]


def predict(samples: list[Sample], builder: NewsContextBuilder) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for sample in samples:
        rows.append(
            {
                "prompt": sample.prompt,
                "expects_news": sample.expects_news,
                "triggered": builder.should_fetch(sample.prompt),
                "matched": matched_keywords(sample.prompt, builder.keywords),
                "note": sample.note,
            }
        )
    return rows


def compute_metrics(rows: list[dict[str, Any]]) -> dict[str, Any]:
    """Score the trigger with "fetch news" as the positive class."""
    false_positives = [r for r in rows if r["triggered"] and not r["expects_news"]]
    false_negatives = [r for r in rows if not r["triggered"] and r["expects_news"]]
    tp = sum(1 for r in rows if r["triggered"] and r["expects_news"])
    tn = sum(1 for r in rows if not r["triggered"] and not r["expects_news"])
    fp = len(false_positives)
    fn = len(false_negatives)

    total = len(rows)
    precision = tp / max(tp + fp, 1)
    recall = tp / max(tp + fn, 1)
    f1 = 0.0 if precision + recall == 0 else (2 * precision * recall) / (precision + recall)
    return {
        "total": total,
        "tp": tp,
        "fp": fp,
        "fn": fn,
        "tn": tn,
        "precision": precision,
        "recall": recall,
        "f1": f1,
        "accuracy": (tp + tn) / max(total, 1),
        "false_positives": [r["prompt"] for r in false_positives],
        "false_negatives": [r["prompt"] for r in false_negatives],
    }


def _fmt_pct(x: float) -> str:
    return f"{x * 100:.2f}%"


def build_markdown_report(input_path: str, keywords: list[str], metrics: dict[str, Any], rows: list[dict[str, Any]]) -> str:
    by_prompt = {r["prompt"]: r for r in rows}
    lines: list[str] = []
    lines.append("# News Trigger Eval Report")
    lines.append("")
    lines.append(f"- input: `{input_path}`")
    lines.append(f"- keywords: `{', '.join(keywords)}`")
    lines.append(f"- total: `{metrics['total']}`")
    lines.append(f"- precision: `{_fmt_pct(metrics['precision'])}`")
    lines.append(f"- recall: `{_fmt_pct(metrics['recall'])}`")
    lines.append(f"- f1: `{_fmt_pct(metrics['f1'])}`")
    lines.append(f"- accuracy: `{_fmt_pct(metrics['accuracy'])}`")
    lines.append("")
    lines.append("## Outcomes")
    lines.append("")
    lines.append("| | triggered | not triggered |")
    lines.append("|---|---:|---:|")
    lines.append(f"| news expected | {metrics['tp']} | {metrics['fn']} |")
    lines.append(f"| chat expected | {metrics['fp']} | {metrics['tn']} |")
    lines.append("")
    lines.append("## False Positives (over-trigger)")
    lines.append("")
    if not metrics["false_positives"]:
        lines.append("- none")
    for prompt in metrics["false_positives"]:
        row = by_prompt.get(prompt, {})
        lines.append(f"- prompt=`{prompt}` matched=`{', '.join(row.get('matched', []))}` note=`{row.get('note', '')}`")
    lines.append("")
    lines.append("## False Negatives (missed)")
    lines.append("")
    if not metrics["false_negatives"]:
        lines.append("- none")
    for prompt in metrics["false_negatives"]:
        row = by_prompt.get(prompt, {})
        lines.append(f"- prompt=`{prompt}` note=`{row.get('note', '')}`")
    lines.append("")
    return "\n".join(lines)


def write_report(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def main() -> int:
    args = parse_args()
    input_path = Path(args.input)
    samples = load_samples(input_path, args.limit)
    builder = NewsContextBuilder(get_settings())
    rows = predict(samples, builder)
    metrics = compute_metrics(rows)

    now = datetime.now().strftime("%Y%m%d_%H%M%S")
    md_path = Path(args.output_md) if args.output_md else Path(f"eval/reports/news_trigger_eval_{now}.md")
    json_path = Path(args.output_json) if args.output_json else Path(f"eval/reports/news_trigger_eval_{now}.json")

    write_report(md_path, build_markdown_report(str(input_path), builder.keywords, metrics, rows))
    write_report(
        json_path,
        json.dumps(
            {
                "input": str(input_path),
                "keywords": builder.keywords,
                "metrics": metrics,
                "rows": rows,
            },
            ensure_ascii=False,
            indent=2,
        ),
    )

    print(
        f"[news-trigger-eval] precision={_fmt_pct(metrics['precision'])} recall={_fmt_pct(metrics['recall'])} "
        f"fp={metrics['fp']} fn={metrics['fn']} total={metrics['total']}"
    )
    print(f"[news-trigger-eval] markdown={md_path}")
    print(f"[news-trigger-eval] json={json_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
