"""Contribution heatmap and per-user activity computed from commit history."""
from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from reallifegit.dtos.graph import ContributionData, ContributionReport, UserActivity
from reallifegit.entities import Commit
from reallifegit.utils.datetime import ensure_aware_utc, utc_now

MAX_INTENSITY = 4

DayCounts = Dict[date, Tuple[int, int]]


def contribution_intensity(commit_count: int, task_count: int) -> int:
    return min(MAX_INTENSITY, (commit_count + task_count) // 2)


def author_handle(commit: Commit) -> str:
    """Local part of the author's email; the key used for user activity."""
    return commit.author.email.split("@")[0]


def _matches_user(commit: Commit, user_id: str) -> bool:
    return user_id in (author_handle(commit), commit.author.email)


def _window(today: date, days: int) -> List[date]:
    start = today - timedelta(days=days - 1)
    return [start + timedelta(days=offset) for offset in range(days)]


def _count_by_day(commits: Iterable[Commit], first_day: date, last_day: date) -> DayCounts:
    counts: Dict[date, List[int]] = defaultdict(lambda: [0, 0])
    for commit in commits:
        day = ensure_aware_utc(commit.timestamp).date()
        if first_day <= day <= last_day:
            counts[day][0] += 1
            counts[day][1] += len(commit.changed_tasks)
    return {day: (values[0], values[1]) for day, values in counts.items()}


def _cells(days: List[date], counts: DayCounts) -> List[ContributionData]:
    cells = []
    for day in days:
        commit_count, task_count = counts.get(day, (0, 0))
        cells.append(
            ContributionData(
                date=day,
                commit_count=commit_count,
                task_count=task_count,
                intensity=contribution_intensity(commit_count, task_count),
            )
        )
    return cells


def longest_streak(active_days: Iterable[date]) -> int:
    """Longest run of consecutive calendar days in ``active_days``."""
    best = current = 0
    previous: Optional[date] = None
    for day in sorted(set(active_days)):
        if previous is not None and day - previous == timedelta(days=1):
            current += 1
        else:
            current = 1
        best = max(best, current)
        previous = day
    return best


def compute_contribution_data(
    commits: Iterable[Commit],
    window_days: int = 365,
    today: Optional[date] = None,
    user_id: Optional[str] = None,
) -> ContributionReport:
    """
    Per-day contribution cells for the ``window_days`` days ending ``today``.

    ``commit_count`` counts commits made that day and ``task_count`` the task
    changes they carry. ``user_activity`` is keyed by author handle. With
    ``user_id`` only that author's commits (by handle or full email) count.
    """
    today = today or utc_now().date()
    days = _window(today, max(window_days, 1))

    commits = list(commits)
    if user_id:
        commits = [commit for commit in commits if _matches_user(commit, user_id)]

    by_author: Dict[str, List[Commit]] = defaultdict(list)
    for commit in commits:
        by_author[author_handle(commit)].append(commit)

    user_activity: Dict[str, UserActivity] = {}
    for handle, authored in sorted(by_author.items()):
        counts = _count_by_day(authored, days[0], days[-1])
        user_activity[handle] = UserActivity(
            user_id=handle,
            total_commits=sum(c for c, _ in counts.values()),
            total_tasks=sum(t for _, t in counts.values()),
            streak_days=longest_streak(counts.keys()),
            contributions=_cells(days, counts),
        )

    return ContributionReport(
        contributions=_cells(days, _count_by_day(commits, days[0], days[-1])),
        user_activity=user_activity,
    )
