from __future__ import annotations
import argparse
from typing import Any, Callable, Dict, Iterable, List

import pandas as pd
import requests
from rich import print as rprint

from .api.client import ApiError, BangumiClient, SubjectItem
from .config import client_from_env
from .utils.io import normalized_dir, raw_dir, save_json, timestamp

KINDS = ["calendar", "popular", "top", "subjects"]


def _subject_rows(items: Iterable[Dict[str, Any]]) -> List[dict]:
    return [SubjectItem.from_payload(item).model_dump() for item in items]


def normalize_calendar(payload: list) -> pd.DataFrame:
    """
    Flatten the /calendar payload (one entry per weekday) to one row per subject.
    """
    rows = []
    for day in payload or []:
        weekday = day.get("weekday") or {}
        for row in _subject_rows(day.get("items") or []):
            row["weekday_id"] = weekday.get("id")
            row["weekday"] = weekday.get("en")
            rows.append(row)
    df = pd.DataFrame(rows)
    if not df.empty:
        df = df.drop_duplicates("id", keep="last")
    return df


def normalize_search(payload: dict) -> pd.DataFrame:
    """
    Normalize a /v0/search/subjects page to a compact table.
    """
    df = pd.DataFrame(_subject_rows(payload.get("data") or []))
    if not df.empty:
        df = df.drop_duplicates("id", keep="last")
    return df


def normalize_subjects(payload: list) -> pd.DataFrame:
    df = pd.DataFrame(_subject_rows(payload))
    if not df.empty:
        df = df.drop_duplicates("id", keep="last")
    return df


def _append_to_normalized(df_new: pd.DataFrame, kind: str) -> pd.DataFrame:
    """
    Append df_new to normalized/<kind>.parquet, align columns, drop dups by id.
    Returns the merged DataFrame.
    """
    if not df_new.empty:
        df_new = df_new.drop_duplicates("id", keep="last")
    out_dir = normalized_dir()
    out_dir.mkdir(parents=True, exist_ok=True)
    out = out_dir / f"{kind}.parquet"

    if not out.exists():
        merged = df_new.reset_index(drop=True)
        merged.to_parquet(out, index=False)
        return merged

    base = pd.read_parquet(out)
    if df_new.empty:
        return base
    if base.empty:
        merged = df_new.reset_index(drop=True)
        merged.to_parquet(out, index=False)
        return merged

    # Align columns (union), then concat
    all_cols = list(dict.fromkeys([*base.columns, *df_new.columns]))
    merged = (
        pd.concat([base.reindex(columns=all_cols), df_new.reindex(columns=all_cols)], ignore_index=True)
        .drop_duplicates("id", keep="last")
        .reset_index(drop=True)
    )
    merged.to_parquet(out, index=False)
    return merged


def _ingest(kind: str, fetch: Callable[[], Any], normalize: Callable[[Any], pd.DataFrame]) -> pd.DataFrame | None:
    rprint(f"[cyan]Fetching {kind}...[/cyan]")
    try:
        payload = fetch()
    except (ApiError, requests.RequestException) as e:
        rprint(f"[red]Failed {kind}: {e}[/red]")
        return None

    save_json(payload, raw_dir() / kind / f"{timestamp()}.json")
    df = normalize(payload)
    if df.empty:
        rprint(f"[yellow]No rows in {kind} payload.[/yellow]")
        return df

    merged = _append_to_normalized(df, kind)
    rprint(f"[green]Appended {len(df)} {kind} rows -> {normalized_dir() / f'{kind}.parquet'} (total {len(merged)})[/green]")
    return merged


def fetch_subjects(client: BangumiClient, ids: Iterable[int]) -> list:
    """Fetch subject details one by one; a failed id is reported and skipped."""
    out = []
    for subject_id in ids:
        try:
            out.append(client.subject(subject_id))
        except (ApiError, requests.RequestException) as e:
            rprint(f"[yellow]skip {subject_id}: {e}[/yellow]")
    return out


def run_ingest(
    client: BangumiClient,
    kinds: Iterable[str],
    limit: int = 24,
    offset: int = 0,
    subject_ids: Iterable[int] = (),
) -> Dict[str, pd.DataFrame | None]:
    """
    Snapshot each requested kind: raw JSON under raw/<kind>/, rows appended to normalized/<kind>.parquet.
    """
    jobs: Dict[str, tuple[Callable[[], Any], Callable[[Any], pd.DataFrame]]] = {
        "calendar": (client.calendar, normalize_calendar),
        "popular": (lambda: client.popular_anime(limit=limit, offset=offset), normalize_search),
        "top": (lambda: client.top_rated_anime(limit=limit, offset=offset), normalize_search),
        "subjects": (
            lambda: fetch_subjects(client, subject_ids),
            normalize_subjects,
        ),
    }
    results = {}
    for kind in kinds:
        if kind not in jobs:
            raise ValueError(f"unknown kind {kind!r}; expected one of {KINDS}")
        results[kind] = _ingest(kind, *jobs[kind])
    return results


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Snapshot Bangumi listings to data/raw and data/normalized.")
    parser.add_argument("--calendar", action="store_true", help="Ingest the daily broadcast calendar")
    parser.add_argument("--popular", action="store_true", help="Ingest popular anime of the current season window")
    parser.add_argument("--top", action="store_true", help="Ingest top rated anime")
    parser.add_argument("--subject", type=int, nargs="*", default=[], help="Ingest details for these subject ids")
    parser.add_argument("--limit", type=int, default=24)
    parser.add_argument("--offset", type=int, default=0)
    args = parser.parse_args()

    kinds = [k for k in ("calendar", "popular", "top") if getattr(args, k)]
    if args.subject:
        kinds.append("subjects")
    if not kinds:
        raise SystemExit("Pass at least one of --calendar, --popular, --top, --subject ID...")

    run_ingest(client_from_env(), kinds, limit=args.limit, offset=args.offset, subject_ids=args.subject)
