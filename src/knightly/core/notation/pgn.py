"""PGN parsing and serialization helpers."""

from __future__ import annotations

import re

from knightly.core.notation.models import ParsedPgn, PgnMove

_PGN_HEADER_RE = re.compile(r'^\[(\w+)\s+"((?:[^"\\]|\\.)*)"\]\s*$')
_PGN_RESULT_TOKENS = frozenset({"1-0", "0-1", "1/2-1/2", "*"})
_MOVE_NUMBER_RE = re.compile(r"^\d+\.+")
_NAG_RE = re.compile(r"^\$\d+$")

# One lexical unit of movetext: a brace comment, a rest-of-line comment,
# a variation bracket or a bare token.
_MOVETEXT_RE = re.compile(
    r"\{(?P<brace>[^}]*)\}?"
    r"|;(?P<line>[^\n]*)"
    r"|(?P<open>\()"
    r"|(?P<close>\))"
    r"|(?P<token>[^\s{};()]+)"
)


def pgn_movetext_from_moves(
    moves: list[PgnMove], result_token: str, first_ply: int = 0
) -> str:
    """Build PGN movetext from mainline moves with optional comments.

    *first_ply* is the ply index of the first move (1 when Black moves first
    from a set-up position), so numbering stays aligned with the game.
    """
    parts: list[str] = []
    for idx, move in enumerate(moves):
        ply = first_ply + idx
        if ply % 2 == 0:
            parts.append(f"{ply // 2 + 1}.")
        elif idx == 0:
            parts.append(f"{ply // 2 + 1}...")
        parts.append(move.san)
        if move.comment:
            # PGN comments cannot contain a closing brace.
            parts.append("{" + move.comment.replace("}", "]") + "}")
    parts.append(result_token)
    return " ".join(parts)


def build_pgn(
    headers: dict[str, str],
    sans: list[str],
    result_token: str,
    comments: list[str | None] | None = None,
    first_ply: int = 0,
) -> str:
    """Build a single-game PGN document: tags, blank line, movetext."""
    if comments is not None and len(comments) != len(sans):
        raise ValueError("PGN comments length must match SAN move length")

    moves = [
        PgnMove(san=san, comment=(comments[idx] or "") if comments else "")
        for idx, san in enumerate(sans)
    ]

    lines = [f'[{key} "{_escape(value)}"]' for key, value in headers.items()]
    lines.append("")
    lines.append(pgn_movetext_from_moves(moves, result_token, first_ply))
    lines.append("")
    return "\n".join(lines)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _unescape(value: str) -> str:
    return value.replace('\\"', '"').replace("\\\\", "\\")


def _append_comment(move: PgnMove, comment: str) -> None:
    clean = " ".join(comment.split())
    if not clean:
        return
    move.comment = f"{move.comment} {clean}" if move.comment else clean


def _parse_movetext(movetext: str) -> tuple[list[PgnMove], str]:
    """Mainline moves (with comments) plus the result token.

    Variations are skipped wholesale, as are move numbers and NAGs.
    """
    moves: list[PgnMove] = []
    result_token = "*"
    depth = 0

    for match in _MOVETEXT_RE.finditer(movetext):
        kind = match.lastgroup
        if kind == "open":
            depth += 1
            continue
        if kind == "close":
            depth = max(0, depth - 1)
            continue
        if depth > 0:
            continue
        if kind in ("brace", "line"):
            if moves:
                _append_comment(moves[-1], match.group(kind) or "")
            continue

        token = match.group("token")
        if token in _PGN_RESULT_TOKENS:
            result_token = token
            continue
        if _NAG_RE.match(token):
            continue
        # "12." / "12..." may be glued to the move: "12.Nf3".
        token = _MOVE_NUMBER_RE.sub("", token)
        if token:
            moves.append(PgnMove(san=token))

    return moves, result_token


def parse_pgn_game(pgn_text: str) -> ParsedPgn:
    """Parse a single PGN game into structured headers/moves/result.

    Raises ``ValueError`` on a malformed tag line.
    """
    headers: dict[str, str] = {}
    move_lines: list[str] = []
    in_headers = True

    for raw_line in pgn_text.splitlines():
        line = raw_line.strip()
        if not line:
            if in_headers and headers:
                in_headers = False
            continue

        if in_headers and line.startswith("["):
            match = _PGN_HEADER_RE.match(line)
            if match is None:
                raise ValueError(f"Invalid PGN header line: {line}")
            key, raw_value = match.groups()
            headers[key] = _unescape(raw_value)
            continue

        in_headers = False
        if line.startswith("%"):
            continue
        move_lines.append(line)

    moves, result_token = _parse_movetext("\n".join(move_lines))
    header_result = headers.get("Result")
    if result_token == "*" and header_result in _PGN_RESULT_TOKENS:
        result_token = header_result

    return ParsedPgn(headers=headers, moves=moves, result_token=result_token)
