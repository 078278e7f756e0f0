"""Position: complete game state (board + metadata) with make/unmake."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from knightly.core import keys
from knightly.core.board import Board
from knightly.core.enums import CastlingRights, Color, MoveFlag, PieceType
from knightly.core.move import Move
from knightly.core.piece import Piece
from knightly.core.types import Square, file_of, make_square, rank_of


@dataclass(slots=True)
class _UndoState:
    """Snapshot saved before each move so we can undo it."""

    castling: CastlingRights
    en_passant: Square | None
    halfmove_clock: int
    captured_piece: Piece | None


# Rook home square -> the castling right that depends on it.
_ROOK_CORNERS: dict[Square, CastlingRights] = {
    make_square(0, 0): CastlingRights.WHITE_QUEENSIDE,
    make_square(7, 0): CastlingRights.WHITE_KINGSIDE,
    make_square(0, 7): CastlingRights.BLACK_QUEENSIDE,
    make_square(7, 7): CastlingRights.BLACK_KINGSIDE,
}


class Position:
    """Full chess position: board + side to move + castling + en passant + clocks.

    Also tracks the ordered list of position keys reached so far, which is
    what repetition detection counts. :meth:`make_move` / :meth:`unmake_move`
    keep an internal undo stack so callers can try a move and take it back.

    A position is owned by one context at a time. Anything speculative
    (legality checks in another thread, search branches) must work on a
    :meth:`copy`.
    """

    __slots__ = (
        "board",
        "side_to_move",
        "castling",
        "en_passant",
        "halfmove_clock",
        "fullmove_number",
        "_key",
        "_undo_stack",
        "_key_stack",
        "_key_counts",
    )

    def __init__(
        self,
        board: Board | None = None,
        side_to_move: Color = Color.WHITE,
        castling: CastlingRights = CastlingRights.ALL,
        en_passant: Square | None = None,
        halfmove_clock: int = 0,
        fullmove_number: int = 1,
    ) -> None:
        self.board = board if board is not None else Board.initial()
        self.side_to_move = side_to_move
        self.castling = castling
        self.en_passant = en_passant
        self.halfmove_clock = halfmove_clock
        self.fullmove_number = fullmove_number
        self._key = keys.compute_key(
            self.board, side_to_move, castling, en_passant
        )
        self._undo_stack: list[_UndoState] = []
        self._key_stack: list[int] = [self._key]
        self._key_counts: dict[int, int] = {self._key: 1}

    # ── FEN bridge ───────────────────────────────────────────────────────

    @classmethod
    def from_fen(cls, fen: str) -> Position:
        """Build a position from FEN (missing trailing fields get defaults)."""
        from knightly.core.notation.fen import position_from_fen

        return position_from_fen(fen)

    def fen(self) -> str:
        from knightly.core.notation.fen import position_to_fen

        return position_to_fen(self)

    # ── Square access ────────────────────────────────────────────────────

    def piece_at(self, sq: Square) -> Piece | None:
        return self.board[sq]

    def set_piece(self, sq: Square, piece: Piece | None) -> None:
        """Overwrite one square (position editing).

        Editing starts a fresh history: the undo stack is dropped and the
        repetition history restarts from the edited position.
        """
        old_piece = self.board[sq]
        if old_piece is not None:
            self._key ^= keys.piece_key(old_piece, sq)
        self.board[sq] = piece
        if piece is not None:
            self._key ^= keys.piece_key(piece, sq)
        self._undo_stack.clear()
        self._key_stack = [self._key]
        self._key_counts = {self._key: 1}

    # ── Core move operations ─────────────────────────────────────────────

    def make_move(self, move: Move) -> None:
        """Apply *move*, pushing undo state onto the internal stack.

        The move must be pseudo-legal for this position; legality is the
        move generator's concern.
        """
        piece = self.board[move.from_sq]
        if piece is None:
            raise ValueError(f"No piece on {move.from_sq}")

        capture_sq = move.to_sq
        if move.flag == MoveFlag.EN_PASSANT:
            # The captured pawn sits beside the origin, behind the target.
            capture_sq = make_square(file_of(move.to_sq), rank_of(move.from_sq))
        captured = self.board[capture_sq]

        self._undo_stack.append(
            _UndoState(
                castling=self.castling,
                en_passant=self.en_passant,
                halfmove_clock=self.halfmove_clock,
                captured_piece=captured,
            )
        )

        self._lift(move.from_sq)
        if captured is not None:
            self._lift(capture_sq)

        placed = piece
        if move.promotion is not None:
            placed = Piece(piece.color, move.promotion)
        self._place(move.to_sq, placed)

        if move.flag == MoveFlag.CASTLE_KINGSIDE:
            rank = rank_of(move.from_sq)
            self._relocate(make_square(7, rank), make_square(5, rank))
        elif move.flag == MoveFlag.CASTLE_QUEENSIDE:
            rank = rank_of(move.from_sq)
            self._relocate(make_square(0, rank), make_square(3, rank))

        next_en_passant: Square | None = None
        if move.flag == MoveFlag.DOUBLE_PAWN:
            next_en_passant = make_square(
                file_of(move.from_sq),
                (rank_of(move.from_sq) + rank_of(move.to_sq)) // 2,
            )
        self._set_en_passant(next_en_passant)
        self._update_castling(move, piece)

        if piece.piece_type == PieceType.PAWN or captured is not None:
            self.halfmove_clock = 0
        else:
            self.halfmove_clock += 1

        if self.side_to_move == Color.BLACK:
            self.fullmove_number += 1

        self.side_to_move = self.side_to_move.opposite
        self._key ^= keys.side_key()
        self._push_key(self._key)

    def unmake_move(self, move: Move) -> None:
        """Undo the last :meth:`make_move` (which must have been *move*)."""
        state = self._undo_stack.pop()
        self._pop_key()

        self.side_to_move = self.side_to_move.opposite
        if self.side_to_move == Color.BLACK:
            self.fullmove_number -= 1

        piece = self.board[move.to_sq]
        assert piece is not None
        if move.promotion is not None:
            piece = Piece(piece.color, PieceType.PAWN)

        self.board[move.from_sq] = piece
        if move.flag == MoveFlag.EN_PASSANT:
            self.board[move.to_sq] = None
            self.board[
                make_square(file_of(move.to_sq), rank_of(move.from_sq))
            ] = state.captured_piece
        else:
            self.board[move.to_sq] = state.captured_piece

        if move.flag == MoveFlag.CASTLE_KINGSIDE:
            rank = rank_of(move.from_sq)
            self.board[make_square(7, rank)] = self.board[make_square(5, rank)]
            self.board[make_square(5, rank)] = None
        elif move.flag == MoveFlag.CASTLE_QUEENSIDE:
            rank = rank_of(move.from_sq)
            self.board[make_square(0, rank)] = self.board[make_square(3, rank)]
            self.board[make_square(3, rank)] = None

        self.castling = state.castling
        self.en_passant = state.en_passant
        self.halfmove_clock = state.halfmove_clock
        self._key = self._key_stack[-1]

    # ── Board / hash bookkeeping ─────────────────────────────────────────

    def _lift(self, sq: Square) -> None:
        piece = self.board[sq]
        if piece is not None:
            self._key ^= keys.piece_key(piece, sq)
            self.board[sq] = None

    def _place(self, sq: Square, piece: Piece) -> None:
        self.board[sq] = piece
        self._key ^= keys.piece_key(piece, sq)

    def _relocate(self, from_sq: Square, to_sq: Square) -> None:
        piece = self.board[from_sq]
        assert piece is not None
        self._lift(from_sq)
        self._place(to_sq, piece)

    def _update_castling(self, move: Move, piece: Piece) -> None:
        next_castling = self.castling
        if piece.piece_type == PieceType.KING:
            if piece.color == Color.WHITE:
                next_castling &= ~CastlingRights.WHITE_BOTH
            else:
                next_castling &= ~CastlingRights.BLACK_BOTH

        # Leaving a corner means the rook moved; landing on one captures it.
        for sq in (move.from_sq, move.to_sq):
            right = _ROOK_CORNERS.get(sq)
            if right is not None:
                next_castling &= ~right

        if next_castling != self.castling:
            self._key ^= keys.castling_key(self.castling)
            self.castling = next_castling
            self._key ^= keys.castling_key(self.castling)

    def _set_en_passant(self, en_passant: Square | None) -> None:
        if en_passant == self.en_passant:
            return
        if self.en_passant is not None:
            self._key ^= keys.en_passant_key(self.en_passant)
        self.en_passant = en_passant
        if self.en_passant is not None:
            self._key ^= keys.en_passant_key(self.en_passant)

    def _push_key(self, key: int) -> None:
        self._key_stack.append(key)
        self._key_counts[key] = self._key_counts.get(key, 0) + 1

    def _pop_key(self) -> None:
        key = self._key_stack.pop()
        remaining = self._key_counts[key] - 1
        if remaining:
            self._key_counts[key] = remaining
        else:
            del self._key_counts[key]

    # ── Utilities ────────────────────────────────────────────────────────

    def copy(self) -> Position:
        """Independent clone: board, state and repetition history.

        The undo stack is not carried over; the clone starts with nothing
        to unmake.
        """
        pos = Position.__new__(Position)
        pos.board = self.board.copy()
        pos.side_to_move = self.side_to_move
        pos.castling = self.castling
        pos.en_passant = self.en_passant
        pos.halfmove_clock = self.halfmove_clock
        pos.fullmove_number = self.fullmove_number
        pos._key = self._key
        pos._undo_stack = []
        pos._key_stack = self._key_stack.copy()
        pos._key_counts = self._key_counts.copy()
        return pos

    @property
    def position_key(self) -> int:
        """Fingerprint of board, side to move, castling and en passant."""
        return self._key

    @property
    def key_history(self) -> tuple[int, ...]:
        """Every key reached so far, oldest first, current last."""
        return tuple(self._key_stack)

    def repetition_count(self) -> int:
        """How many times the current key occurs in the history."""
        return self._key_counts.get(self._key, 0)

    def restore_key_history(self, history: Sequence[int]) -> None:
        """Adopt *history* as this position's repetition record.

        Used after rebuilding a position from a FEN snapshot; the snapshot
        carries no history of its own. The last key must be this position's.
        """
        if not history or history[-1] != self._key:
            raise ValueError("Key history does not end at the current position")
        self._key_stack = list(history)
        self._key_counts = {}
        for key in self._key_stack:
            self._key_counts[key] = self._key_counts.get(key, 0) + 1

    def __repr__(self) -> str:
        return f"Position({self.fen()!r})"
