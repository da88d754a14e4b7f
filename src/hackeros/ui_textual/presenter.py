from __future__ import annotations

from rich.text import Text

from hackeros.cli.editor import EditorBuffer
from hackeros.cli.modes import EditorMode, NormalMode
from hackeros.cli.output import OutputLine
from hackeros.cli.session import SessionInterpreter
from hackeros.config.balance import Balance
from hackeros.core.missions import MissionStore
from hackeros.model.fs import FsError
from hackeros.model.missions import MissionState, PlayerProgress

_STATE_MARKS = {
    MissionState.LOCKED: "[L]",
    MissionState.AVAILABLE: "[ ]",
    MissionState.IN_PROGRESS: "[>]",
    MissionState.COMPLETED: "[x]",
}


def build_header(session: SessionInterpreter) -> str:
    user = session.env.get("USER", Balance.USER)
    return f"{Balance.OS_NAME} {Balance.OS_VERSION} | {user}@{Balance.HOSTNAME}:{session.display_path()} | mode={session.mode.kind.value}"


def build_status_line(progress: PlayerProgress) -> str:
    if progress.is_max_level:
        nxt = "max"
    else:
        nxt = f"{progress.xp_to_next_level} to next"
    return (
        f"LVL {progress.level}  XP {progress.xp} ({nxt})  RANK {progress.rank}  "
        f"ELO {progress.elo}  DONE {len(progress.completed_missions)}"
    )


def build_mission_lines(store: MissionStore) -> list[str]:
    lines = ["MISSIONS"]
    if not store.missions:
        lines.append("  (none)")
        return lines
    for mission in store.missions.values():
        lines.append(f"{_STATE_MARKS[mission.state]} {mission.title} ({mission.id})")
    active = store.active_mission
    lines.append("")
    if active is None:
        lines.append("No active mission.")
        lines.append("mission start <id>")
        return lines
    lines.append(f"ACTIVE: {active.title}")
    lines.append(f"{active.completed_count}/{len(active.objectives)} objectives")
    for obj in active.objectives:
        lines.append(f"  {'[x]' if obj.completed else '[ ]'} {obj.description}")
    return lines


def build_editor_lines(path: str, buffer: EditorBuffer) -> list[str]:
    flag = " *" if buffer.dirty else ""
    lines = [f"nano: {path}{flag}", f"line {buffer.row + 1}, col {buffer.col + 1}", ""]
    lines.extend(buffer.render())
    return lines


def build_side_lines(session: SessionInterpreter) -> list[str]:
    mode = session.mode
    if isinstance(mode, EditorMode):
        return build_editor_lines(mode.path, mode.buffer)
    return build_mission_lines(session.missions)


def style_line(line: OutputLine) -> Text:
    if line.is_error:
        return Text(line.text, style="red")
    return Text(line.text, style=line.color or "")


def completion_candidates(session: SessionInterpreter, buf: str) -> list[str]:
    if not isinstance(session.mode, NormalMode):
        return []
    tokens = buf.split()
    if buf.endswith(" ") or not tokens:
        tokens.append("")
    text = tokens[-1]
    if len(tokens) == 1:
        return sorted(c for c in session.commands.table if c.startswith(text))
    if tokens[0] == "mission":
        if len(tokens) == 2:
            return [c for c in ("info", "list", "start", "status") if c.startswith(text)]
        if len(tokens) == 3 and tokens[1] in ("start", "info"):
            return sorted(m for m in session.missions.missions if m.startswith(text))
        return []
    directory, _, prefix = text.rpartition("/")
    if text.startswith("/") and not directory:
        directory = "/"
    try:
        entries = session.fs.list(directory or ".", show_hidden=prefix.startswith("."))
    except FsError:
        return []
    base = "" if not directory else ("/" if directory == "/" else f"{directory}/")
    return [base + e.name + ("/" if e.is_dir else "") for e in entries if e.name.startswith(prefix)]


def common_prefix(candidates: list[str]) -> str:
    if not candidates:
        return ""
    prefix = candidates[0]
    for c in candidates[1:]:
        while not c.startswith(prefix) and prefix:
            prefix = prefix[:-1]
    return prefix
