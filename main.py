import argparse
import base64
import json
import re
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

import config
from chat import ChatSession
from consultant import ConsultingOrchestrator
from creator_tools import analyze_channel, brainstorm_ideas
from errors import CreatorBoostError, classify_error, user_message
from generators import generate_full_script, generate_storyboard, generate_thumbnail
from models import (
    ChannelReport,
    ComparativeAnalysis,
    ConsultingRun,
    VideoIdea,
    VideoProposal,
    VideoRecord,
    WorkflowMode,
    WorkflowState,
)
from quota import VIDEO_LOOKUP_COST, QuotaTracker
from settings_store import SettingsStore
from youtube_api import YouTubeClient

console = Console()


def _format_number(n: int | None) -> str:
    if n is None:
        return "N/A"
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n / 1_000:.1f}K"
    return str(n)


def _sanitize_filename(s: str) -> str:
    return re.sub(r'[^\w\-]', '_', s)[:50]


def _save_json(data, label: str, out_dir: Path) -> Path:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{_sanitize_filename(label)}_{timestamp}.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    console.print(f"[green]Saved {path}[/green]")
    return path


def _save_image(image_b64: str, label: str, out_dir: Path) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{_sanitize_filename(label)}.png"
    path.write_bytes(base64.b64decode(image_b64))
    console.print(f"[green]Saved {path}[/green]")
    return path


def _fail(e: Exception):
    category = classify_error(e)
    console.print(f"[red]{user_message(category)}[/red]")
    if str(e):
        console.print(str(e), style="dim", markup=False)


def _print_ideas(ideas: list[VideoIdea]):
    table = Table(title="Video Ideas", show_lines=True)
    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("Description", style="white", max_width=60)
    table.add_column("Tags", style="magenta", max_width=30)
    for idea in ideas:
        table.add_row(idea.title, idea.description, ", ".join(idea.tags))
    console.print(table)


def _print_channel(report: ChannelReport):
    ch = report.channel
    table = Table(title=ch.title, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Subscribers", _format_number(ch.stats.subscriber_count))
    table.add_row("Views", _format_number(ch.stats.view_count))
    table.add_row("Videos", _format_number(ch.stats.video_count))
    console.print(table)

    if ch.recent_videos:
        console.print("[bold]Recent videos[/bold]")
        for v in ch.recent_videos:
            console.print(f"  - {v.title}")

    analysis = report.analysis
    if not analysis:
        return
    for heading, items in (
        ("Strengths", analysis.strengths),
        ("Weaknesses", analysis.weaknesses),
        ("Opportunities", analysis.opportunities),
    ):
        console.print(f"\n[bold]{heading}[/bold]")
        for item in items:
            console.print(f"  - {item}")
    console.print("\n[bold]Video ideas[/bold]")
    for idea in analysis.video_ideas:
        console.print(f"  - [cyan]{idea.title}[/cyan]: {idea.description}")


def _print_video(video: VideoRecord, label: str):
    console.print(
        f"[bold]{label}:[/bold] {video.title} [dim]({video.channel_title})[/dim]  "
        f"views {_format_number(video.stats.view_count)}, "
        f"likes {_format_number(video.stats.like_count)}, "
        f"comments {_format_number(video.stats.comment_count)}"
    )


def _print_run(run: ConsultingRun):
    if run.user_video:
        _print_video(run.user_video, "Your video")
    if run.benchmark_video:
        _print_video(run.benchmark_video, "Benchmark video")
    if not run.result:
        return

    bench = run.result.benchmark_analysis
    table = Table(title="Benchmark Analysis", show_header=False, show_lines=True)
    table.add_column("Aspect", style="cyan")
    table.add_column("Analysis", style="white", max_width=80)
    table.add_row("Title hook", bench.title_hook)
    table.add_row("Content strategy", bench.content_strategy)
    table.add_row("Target audience", bench.target_audience)
    table.add_row("Monetization", bench.monetization_potential)
    console.print(table)

    body = run.result.body
    if isinstance(body, ComparativeAnalysis):
        table = Table(title="Comparative Analysis", show_header=False, show_lines=True)
        table.add_column("Aspect", style="cyan")
        table.add_column("Advice", style="white", max_width=80)
        table.add_row("Your strength", body.user_video.strength)
        table.add_row("Your weakness", body.user_video.weakness)
        table.add_row("Benchmark strength", body.benchmark_video.strength)
        table.add_row("Tactic to adopt", body.benchmark_video.tactic_to_adopt)
        table.add_row("Improve title", body.improvement_areas.title)
        table.add_row("Improve thumbnail", body.improvement_areas.thumbnail)
        table.add_row("Improve content", body.improvement_areas.content)
        console.print(table)
        return

    console.print("\n[bold]Titles[/bold]")
    for title in body.titles:
        console.print(f"  - {title}")
    console.print(f"\n[bold]Description[/bold]\n{body.description}")
    console.print(f"\n[bold]Tags[/bold] {', '.join(body.tags)}")
    script = body.script
    console.print("\n[bold]Script outline[/bold]")
    console.print(f"  Hook: {script.hook}")
    console.print(f"  Intro: {script.introduction}")
    for point in script.main_points:
        console.print(f"    - {point}")
    console.print(f"  CTA: {script.call_to_action}")
    console.print(f"  Outro: {script.outro}")
    console.print("\n[bold]Thumbnail concepts[/bold]")
    for concept in body.thumbnail_concepts:
        console.print(f"  - {concept}")


def _run_follow_ons(proposal: VideoProposal, args, language: str, out_dir: Path):
    title = proposal.titles[0] if proposal.titles else "Untitled"

    if args.thumbnails:
        for i, concept in enumerate(proposal.thumbnail_concepts, start=1):
            try:
                with console.status(f"Generating thumbnail {i}..."):
                    image = generate_thumbnail(concept)
                _save_image(image, f"thumbnail_{i}", out_dir)
            except Exception as e:
                _fail(e)

    if args.script:
        try:
            with console.status("Writing full script..."):
                script = generate_full_script(proposal.script, title, language)
            console.print(Markdown(script))
            path = out_dir / f"script_{_sanitize_filename(title)}.md"
            out_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(script, encoding="utf-8")
            console.print(f"[green]Saved {path}[/green]")
        except Exception as e:
            _fail(e)

    if args.storyboard:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            task = progress.add_task("Writing scenes...", total=None)

            def on_progress(storyboard):
                p = storyboard.progress
                if p.total:
                    progress.update(task, description=f"Drawing scene {p.current}/{p.total}...")

            storyboard = generate_storyboard(title, proposal.script, language, on_progress=on_progress)

        for i, scene in enumerate(storyboard.scenes, start=1):
            if scene.image_b64:
                _save_image(scene.image_b64, f"storyboard_{i}_{scene.label}", out_dir)
            else:
                console.print(f"[dim]Scene {i} ({scene.label}) not drawn[/dim]")
        if storyboard.error:
            console.print(f"[red]{user_message(storyboard.error)}[/red]")


def cmd_ideas(args, settings: SettingsStore, quota: QuotaTracker):
    try:
        with console.status(f"Brainstorming ideas for {args.keyword}..."):
            ideas = brainstorm_ideas(args.keyword, settings.language)
    except Exception as e:
        _fail(e)
        return 1
    _print_ideas(ideas)
    _save_json([i.model_dump() for i in ideas], f"ideas_{args.keyword}", Path(args.out))
    return 0


def cmd_channel(args, settings: SettingsStore, quota: QuotaTracker):
    fetched = {}
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
    ) as progress:
        task = progress.add_task("Starting...", total=None)
        try:
            report = analyze_channel(
                args.channel,
                settings,
                quota,
                on_progress=lambda status, message: progress.update(task, description=message),
                on_channel=lambda channel: fetched.update(channel=channel),
            )
        except Exception as e:
            report = ChannelReport(channel=fetched["channel"]) if "channel" in fetched else None
            error = e
        else:
            error = None

    if report:
        _print_channel(report)
        _save_json(report.model_dump(), f"channel_{args.channel}", Path(args.out))
    if error:
        _fail(error)
        return 1
    return 0


def cmd_consult(args, settings: SettingsStore, quota: QuotaTracker):
    mode = WorkflowMode.IMPROVE if args.mine else WorkflowMode.NEW

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
    ) as progress:
        task = progress.add_task("Starting...", total=None)
        orchestrator = ConsultingOrchestrator(
            settings, quota, on_step=lambda label: progress.update(task, description=label)
        )
        run = orchestrator.run(args.benchmark, args.mine or "", mode)

    _print_run(run)
    out_dir = Path(args.out)
    if run.state == WorkflowState.ERROR:
        console.print(f"[red]{user_message(run.error)}[/red]")
        console.print(run.error_message or "", style="dim", markup=False)
        return 1

    _save_json(run.model_dump(mode="json"), f"consult_{args.benchmark}", out_dir)
    if isinstance(run.result.body, VideoProposal):
        _run_follow_ons(run.result.body, args, settings.language, out_dir)
    elif args.script or args.storyboard or args.thumbnails:
        console.print("[dim]Script, storyboard and thumbnails need a new-video proposal (omit --mine).[/dim]")
    return 0


def cmd_chat(args, settings: SettingsStore, quota: QuotaTracker):
    session = ChatSession(settings.language)
    console.print(f"[bold cyan]AI:[/bold cyan] {session.messages[0].text}")
    console.print("[dim]Empty line or Ctrl+D to quit.[/dim]")

    while True:
        try:
            text = console.input("[bold]You:[/bold] ")
        except (EOFError, KeyboardInterrupt):
            break
        if not text.strip():
            break

        shown = ""
        console.print("[bold cyan]AI:[/bold cyan] ", end="")

        def on_update(buffer: str):
            nonlocal shown
            console.print(buffer[len(shown):], end="", markup=False, highlight=False)
            shown = buffer

        reply = session.send(text, on_update=on_update)
        # The streamed text was replaced, e.g. by the error reply
        if reply.text != shown:
            if shown:
                console.print()
            console.print(reply.text, end="", markup=False, highlight=False)
        console.print()
    return 0


def cmd_settings(args, settings: SettingsStore, quota: QuotaTracker):
    try:
        if args.youtube_key is not None:
            settings.youtube_api_key = args.youtube_key
            console.print("[green]YouTube API key saved[/green]")
        if args.language:
            settings.language = args.language
            console.print(f"[green]Language set to {config.LANGUAGES[args.language]}[/green]")
    except CreatorBoostError as e:
        _fail(e)
        return 1

    if args.test:
        if not settings.youtube_api_key:
            console.print("[red]No YouTube API key set[/red]")
            return 1
        try:
            with console.status("Testing YouTube API key..."):
                valid = YouTubeClient(settings.youtube_api_key).validate_key()
        except Exception as e:
            _fail(e)
            return 1
        quota.increment_by(VIDEO_LOOKUP_COST)
        console.print("[green]Key is valid[/green]" if valid else "[red]Key was rejected[/red]")
        return 0 if valid else 1

    key = settings.youtube_api_key
    console.print(f"YouTube API key: {'set (...' + key[-4:] + ')' if key else '[red]not set[/red]'}")
    console.print(f"Language: {config.LANGUAGES[settings.language]}")
    return 0


def cmd_quota(args, settings: SettingsStore, quota: QuotaTracker):
    snap = quota.snapshot()
    console.print(
        f"Quota used today ({snap['day']}): [bold]{snap['used']:,}[/bold] / {snap['limit']:,} "
        f"[dim]({snap['remaining']:,} remaining)[/dim]"
    )
    return 0


def main():
    parser = argparse.ArgumentParser(description="Creator Boost: YouTube growth assistant")
    parser.add_argument("--out", default="results", help="Directory for saved results (default: results)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("ideas", help="Brainstorm video ideas for a keyword")
    p.add_argument("keyword")
    p.set_defaults(func=cmd_ideas)

    p = sub.add_parser("channel", help="Fetch a channel and run a SWOT analysis")
    p.add_argument("channel", help="Channel name, handle or ID")
    p.set_defaults(func=cmd_channel)

    p = sub.add_parser("consult", help="Analyze a benchmark video")
    p.add_argument("benchmark", help="Benchmark video URL, ID or search keyword")
    p.add_argument("--mine", help="URL of your own video for a side-by-side comparison")
    p.add_argument("--script", action="store_true", help="Also write the full script")
    p.add_argument("--storyboard", action="store_true", help="Also draw a storyboard")
    p.add_argument("--thumbnails", action="store_true", help="Also generate the thumbnail concepts")
    p.set_defaults(func=cmd_consult)

    p = sub.add_parser("chat", help="Chat with the AI consultant")
    p.set_defaults(func=cmd_chat)

    p = sub.add_parser("settings", help="Show or change settings")
    p.add_argument("--youtube-key", help="Save a YouTube Data API key")
    p.add_argument("--language", choices=sorted(config.LANGUAGES), help="Response language")
    p.add_argument("--test", action="store_true", help="Check the YouTube API key with a cheap lookup")
    p.set_defaults(func=cmd_settings)

    p = sub.add_parser("quota", help="Show today's YouTube API quota usage")
    p.set_defaults(func=cmd_quota)

    args = parser.parse_args()
    config.setup_logging()

    if args.command in ("ideas", "channel", "consult", "chat"):
        config.validate()

    settings = SettingsStore(config.SETTINGS_FILE)
    quota = QuotaTracker(settings)
    raise SystemExit(args.func(args, settings, quota))


if __name__ == "__main__":
    main()
