"""
Merge adjudication prompt helpers.

Builds the operator-facing description of a merge candidate group and parses
the operator's answer. Kept free of IO so it can be tested without stdin;
the ``series merge`` command handles prompting and echoing.
"""

from __future__ import annotations

from ....usecases.series_merge import MergeCandidateGroup

SKIP_ANSWERS = frozenset({"", "s", "skip"})


def build_group_prompt(group: MergeCandidateGroup, number: int) -> str:
    """
    Describe a candidate group.

    Each member series is listed with its records (title, year, episode count,
    kind) so the operator can decide which series survives.
    """
    lines = [f"GROUP {number}: {len(group.members)} possibly related series"]
    for index, member in enumerate(group.members, start=1):
        lines.append(f"[{index}] \"{member.title}\" (series {member.series_id}, {len(member.members)} records)")
        for record in member.members:
            year = record.release_year if record.release_year is not None else "Unknown"
            episodes = record.episodes if record.episodes is not None else "?"
            lines.append(f"    - {record.title} ({year}) - {episodes} episodes - {record.kind.value}")
    return "\n".join(lines)


def choice_prompt(group: MergeCandidateGroup) -> str:
    return f"Surviving series [1-{len(group.members)}], or 's' to skip"


def parse_survivor_choice(response: str | None, group_size: int) -> int | None:
    """
    Turn an operator answer into a survivor index.

    Returns:
        The zero-based index of the surviving series, or None to skip the group

    Raises:
        ValueError: if the answer is neither a skip nor a number in range
    """
    answer = (response or "").strip().lower()
    if answer in SKIP_ANSWERS:
        return None
    try:
        number = int(answer)
    except ValueError as exc:
        raise ValueError(f"Enter a number between 1 and {group_size}, or 's'") from exc
    if not 1 <= number <= group_size:
        raise ValueError(f"Enter a number between 1 and {group_size}, or 's'")
    return number - 1
