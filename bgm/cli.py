from __future__ import annotations
import argparse
import json
from datetime import date
from typing import Any, Iterable, List, Optional

import requests
from rich import print as rprint
from rich import print_json
from rich.markup import escape
from rich.table import Table

from .api.client import TYPE_ANIME, TYPE_BOOK, TYPE_GAME, TYPE_MUSIC, TYPE_REAL, ApiError, BangumiClient, SubjectItem
from .config import client_from_env
from .utils.season import previous_quarter, season_name, season_window_start


def subjects_table(title: str, items: Iterable[dict]) -> Table:
    t = Table(title=title, show_header=True, header_style="bold")
    t.add_column("ID", justify="right")
    t.add_column("Name")
    t.add_column("Date")
    t.add_column("Score", justify="right")
    t.add_column("Rank", justify="right")
    for item in items:
        s = SubjectItem.from_payload(item)
        t.add_row(
            str(s.id),
            escape(s.name_cn or s.name or ""),
            s.date or "",
            f"{s.score:.1f}" if s.score else "-",
            str(s.rank) if s.rank else "-",
        )
    return t


def show_calendar(payload: list, weekday: Optional[int]) -> None:
    for day in payload:
        wd = day.get("weekday") or {}
        if weekday is not None and wd.get("id") != weekday:
            continue
        rprint(subjects_table(f"{wd.get('en', '?')} / {wd.get('cn', '')}", day.get("items") or []))


def show_comments(payload: Any) -> None:
    # p1 comments come back as {"data": [...], "total": n}
    rows = payload.get("data", []) if isinstance(payload, dict) else payload
    t = Table(show_header=True, header_style="bold")
    t.add_column("User")
    t.add_column("Rate", justify="right")
    t.add_column("Comment")
    for c in rows or []:
        user = c.get("user") or {}
        t.add_row(
            escape(user.get("nickname") or user.get("username") or ""),
            str(c.get("rate") or "-"),
            escape(c.get("comment") or ""),
        )
    rprint(t)


def popular_title(today: Optional[date] = None) -> str:
    today = today or date.today()
    _, prev = previous_quarter(today.year, today.month)
    return f"Popular anime since {season_window_start(today)} ({season_name(prev)} + {season_name(today.month)})"


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="bgm", description="Query the Bangumi catalog.")
    ap.add_argument("--json", action="store_true", help="Print the raw JSON payload")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("calendar", help="Daily broadcast schedule")
    p.add_argument("--weekday", type=int, choices=range(1, 8), default=None, help="1=Mon .. 7=Sun")

    p = sub.add_parser("subject", help="Subject details")
    p.add_argument("id", type=int)

    p = sub.add_parser("comments", help="Subject comments")
    p.add_argument("id", type=int)
    p.add_argument("--limit", type=int, default=20)
    p.add_argument("--offset", type=int, default=0)

    p = sub.add_parser("search", help="Search subjects by keyword")
    p.add_argument("keyword")
    p.add_argument("--sort", choices=["match", "heat", "rank", "score"], default="match")
    p.add_argument(
        "--type",
        type=int,
        nargs="+",
        default=[TYPE_ANIME],
        dest="types",
        help=f"Subject types: {TYPE_BOOK}=book {TYPE_ANIME}=anime {TYPE_MUSIC}=music {TYPE_GAME}=game {TYPE_REAL}=real",
    )
    p.add_argument("--limit", type=int, default=20)
    p.add_argument("--offset", type=int, default=0)

    for name, help_text in (("popular", "Popular anime of the current season window"), ("top", "Top rated anime")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--limit", type=int, default=24)
        p.add_argument("--offset", type=int, default=0)
    return ap


def run(args: argparse.Namespace, client: BangumiClient, today: Optional[date] = None) -> None:
    today = today or date.today()
    if args.command == "calendar":
        payload = client.calendar()
    elif args.command == "subject":
        payload = client.subject(args.id)
    elif args.command == "comments":
        payload = client.comments(args.id, limit=args.limit, offset=args.offset)
    elif args.command == "search":
        payload = client.search_subjects(args.keyword, sort=args.sort, limit=args.limit, offset=args.offset, types=args.types)
    elif args.command == "popular":
        payload = client.popular_anime(limit=args.limit, offset=args.offset, today=today)
    else:
        payload = client.top_rated_anime(limit=args.limit, offset=args.offset)

    if args.json:
        print_json(json.dumps(payload, ensure_ascii=False))
        return

    if args.command == "calendar":
        show_calendar(payload, args.weekday)
    elif args.command == "subject":
        rprint(subjects_table(f"Subject {args.id}", [payload]))
        if payload.get("summary"):
            rprint(escape(payload["summary"]))
    elif args.command == "comments":
        show_comments(payload)
    else:
        title = {
            "search": f"Search: {escape(getattr(args, 'keyword', ''))}",
            "popular": popular_title(today),
            "top": "Top rated",
        }[args.command]
        rprint(subjects_table(title, payload.get("data") or []))
        rprint(f"[cyan]{len(payload.get('data') or [])} of {payload.get('total', '?')}[/cyan]")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        run(args, client_from_env())
    except ApiError as e:
        rprint(f"[red]{e}[/red]")
        return 1
    except requests.RequestException as e:
        rprint(f"[red]Request failed: {e}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
