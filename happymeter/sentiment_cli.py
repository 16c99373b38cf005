#!/usr/bin/env python3
"""Command-line tool for trying out the sentiment model.

Usage:
    happymeter-sentiment "Your text here"
    happymeter-sentiment            (runs the built-in samples)
"""
import asyncio
import sys
import time
from typing import List

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from schemas import AnalysisResult
from sentiment_analyzer import SentimentClassifier

console = Console()

SAMPLES = [
    "This product is absolutely amazing! Best purchase ever!",
    "Terrible experience, completely disappointed.",
    "It works as expected, nothing special.",
    "I love this! Highly recommend to everyone.",
    "Worst product I've ever bought. Save your money.",
    "Pretty decent, meets basic requirements.",
    "ok"
]

LABEL_STYLES = {
    "GOOD": "bold green",
    "BAD": "bold red",
    "NEUTRAL": "bold yellow"
}


def render_result(text: str, result: AnalysisResult, elapsed_ms: float) -> Table:
    """Build a results table for one analyzed text."""
    table = Table(
        title=f"📝 \"{text}\"",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )

    table.add_column("Attribute", style="cyan", width=20)
    table.add_column("Value", style="green")

    label = result.label.value
    table.add_row("Label", f"[{LABEL_STYLES[label]}]{label}[/]")
    table.add_row("Score", f"{result.score} (range: -10 to +10)")
    table.add_row("Time", f"{elapsed_ms:.0f}ms")
    table.add_row("Positive", f"{result.probs['positive'] * 100:.2f}%")
    table.add_row("Neutral", f"{result.probs['neutral'] * 100:.2f}%")
    table.add_row("Negative", f"{result.probs['negative'] * 100:.2f}%")
    return table


async def analyze_texts(classifier: SentimentClassifier, texts: List[str]) -> None:
    console.print("[cyan]🚀 Warming up sentiment analysis model...[/cyan]")
    started = time.perf_counter()
    await classifier.warmup()
    console.print(f"[green]✅ Model loaded in {(time.perf_counter() - started) * 1000:.0f}ms[/green]\n")

    for text in texts:
        started = time.perf_counter()
        result = await classifier.analyze(text)
        elapsed_ms = (time.perf_counter() - started) * 1000
        console.print(render_result(text, result, elapsed_ms))
        console.print()

    console.print(Panel("✨ Analysis complete!", border_style="bold blue", box=box.DOUBLE))


def main(argv: List[str] = None) -> int:
    """Main entry point."""
    argv = sys.argv[1:] if argv is None else argv
    input_text = " ".join(argv).strip()
    texts = [input_text] if input_text else SAMPLES

    try:
        asyncio.run(analyze_texts(SentimentClassifier(), texts))
    except KeyboardInterrupt:
        console.print("\n[cyan]Goodbye![/cyan]\n")
    except Exception as e:
        console.print(f"[red]❌ Error: {e}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
