"""Legal and pseudo-legal move generation + attack detection.

Moves come out in a fixed order: origin squares are visited rank 8 down to
rank 1, files a→h, and each piece walks its offsets in a fixed order. SAN
disambiguation and the engine's tie-breaking both rely on that order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from knightly.core.enums import CastlingRights, Color, MoveFlag, PieceType
from knightly.core.move import Move
from knightly.core.piece import Piece
from knightly.core.types import SCAN_ORDER, Square, file_of, make_square, rank_of

if TYPE_CHECKING:
    from knightly.core.position import Position


# Offsets are (file delta, rank delta).
KNIGHT_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, 2),
    (1, 2),
    (-2, 1),
    (2, 1),
    (-2, -1),
    (2, -1),
    (-1, -2),
    (1, -2),
)

KING_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, 1),
    (0, 1),
    (1, 1),
    (-1, 0),
    (1, 0),
    (-1, -1),
    (0, -1),
    (1, -1),
)

BISHOP_DIRS: tuple[tuple[int, int], ...] = ((-1, 1), (1, 1), (-1, -1), (1, -1))
ROOK_DIRS: tuple[tuple[int, int], ...] = ((0, 1), (0, -1), (-1, 0), (1, 0))
QUEEN_DIRS: tuple[tuple[int, int], ...] = KING_OFFSETS

PROMOTION_TYPES: tuple[PieceType, ...] = (
    PieceType.QUEEN,
    PieceType.ROOK,
    PieceType.BISHOP,
    PieceType.KNIGHT,
)


# -- Precomputed lookup tables ---------------------------------------------


def _build_targets(
    offsets: tuple[tuple[int, int], ...],
) -> tuple[tuple[Square, ...], ...]:
    targets: list[tuple[Square, ...]] = []
    for sq in range(64):
        file_idx = file_of(sq)
        rank_idx = rank_of(sq)
        moves: list[Square] = []
        for df, dr in offsets:
            af = file_idx + df
            ar = rank_idx + dr
            if 0 <= af < 8 and 0 <= ar < 8:
                moves.append(make_square(af, ar))
        targets.append(tuple(moves))
    return tuple(targets)


def _build_rays(
    directions: tuple[tuple[int, int], ...],
) -> tuple[tuple[tuple[Square, ...], ...], ...]:
    rays_per_square: list[tuple[tuple[Square, ...], ...]] = []
    for sq in range(64):
        file_idx = file_of(sq)
        rank_idx = rank_of(sq)
        square_rays: list[tuple[Square, ...]] = []
        for df, dr in directions:
            af = file_idx + df
            ar = rank_idx + dr
            ray: list[Square] = []
            while 0 <= af < 8 and 0 <= ar < 8:
                ray.append(make_square(af, ar))
                af += df
                ar += dr
            square_rays.append(tuple(ray))
        rays_per_square.append(tuple(square_rays))
    return tuple(rays_per_square)


_KNIGHT_TARGETS = _build_targets(KNIGHT_OFFSETS)
_KING_TARGETS = _build_targets(KING_OFFSETS)

_BISHOP_RAYS = _build_rays(BISHOP_DIRS)
_ROOK_RAYS = _build_rays(ROOK_DIRS)
_QUEEN_RAYS = _build_rays(QUEEN_DIRS)

_DIAGONAL_SLIDERS = (PieceType.BISHOP, PieceType.QUEEN)
_ORTHOGONAL_SLIDERS = (PieceType.ROOK, PieceType.QUEEN)

# Castling geometry per color: home rank, rights, rook corners.
_HOME_RANK: tuple[int, int] = (0, 7)
_KINGSIDE_RIGHT: tuple[CastlingRights, CastlingRights] = (
    CastlingRights.WHITE_KINGSIDE,
    CastlingRights.BLACK_KINGSIDE,
)
_QUEENSIDE_RIGHT: tuple[CastlingRights, CastlingRights] = (
    CastlingRights.WHITE_QUEENSIDE,
    CastlingRights.BLACK_QUEENSIDE,
)


class MoveGenerator:
    """Generates legal moves for a given :class:`Position`.

    The generator mutates the position via ``make_move`` / ``unmake_move``
    internally but always restores it before returning.
    """

    __slots__ = ("_pos", "_board")

    def __init__(self, position: Position) -> None:
        self._pos = position
        self._board = position.board

    # -- Public API ---------------------------------------------------------

    def generate_legal_moves(self, from_sq: Square | None = None) -> list[Move]:
        """All strictly legal moves for the side to move.

        With *from_sq*, only moves of the piece standing there.
        """
        legal: list[Move] = []
        moving_color = self._pos.side_to_move
        append_legal = legal.append

        for move in self.generate_pseudo_legal_moves(from_sq):
            self._pos.make_move(move)
            if not self.is_in_check(moving_color):
                append_legal(move)
            self._pos.unmake_move(move)
        return legal

    def generate_pseudo_legal_moves(
        self, from_sq: Square | None = None
    ) -> list[Move]:
        """All pseudo-legal moves (may leave own king in check)."""
        moves: list[Move] = []
        color = self._pos.side_to_move
        board = self._board
        squares = SCAN_ORDER if from_sq is None else (from_sq,)

        for sq in squares:
            piece = board[sq]
            if piece is None or piece.color != color:
                continue
            ptype = piece.piece_type
            if ptype == PieceType.PAWN:
                self._gen_pawn(sq, color, moves)
            elif ptype == PieceType.KNIGHT:
                self._gen_steps(sq, color, ptype, _KNIGHT_TARGETS[sq], moves)
            elif ptype == PieceType.BISHOP:
                self._gen_sliding(sq, color, ptype, _BISHOP_RAYS[sq], moves)
            elif ptype == PieceType.ROOK:
                self._gen_sliding(sq, color, ptype, _ROOK_RAYS[sq], moves)
            elif ptype == PieceType.QUEEN:
                self._gen_sliding(sq, color, ptype, _QUEEN_RAYS[sq], moves)
            else:
                self._gen_steps(sq, color, ptype, _KING_TARGETS[sq], moves)
                self._gen_castling(sq, color, moves)

        return moves

    def has_legal_moves(self) -> bool:
        """True as soon as one legal move is found."""
        moving_color = self._pos.side_to_move
        for move in self.generate_pseudo_legal_moves():
            self._pos.make_move(move)
            in_check = self.is_in_check(moving_color)
            self._pos.unmake_move(move)
            if not in_check:
                return True
        return False

    # -- Attack detection (public) -----------------------------------------

    def is_in_check(self, color: Color) -> bool:
        """Is *color*'s king attacked by the opponent?"""
        king_sq = self._board.king_square(color)
        return self.is_square_attacked(king_sq, color.opposite)

    def is_square_attacked(self, sq: Square, by_color: Color) -> bool:
        """Is *sq* attacked by any piece of *by_color*?"""
        board = self._board

        for from_sq in _KNIGHT_TARGETS[sq]:
            piece = board[from_sq]
            if (
                piece is not None
                and piece.color == by_color
                and piece.piece_type == PieceType.KNIGHT
            ):
                return True

        for from_sq in _KING_TARGETS[sq]:
            piece = board[from_sq]
            if (
                piece is not None
                and piece.color == by_color
                and piece.piece_type == PieceType.KING
            ):
                return True

        # A white pawn attacks upwards, so it sits one rank below its target.
        pawn_rank = rank_of(sq) - 1 if by_color == Color.WHITE else rank_of(sq) + 1
        if 0 <= pawn_rank < 8:
            for df in (-1, 1):
                pawn_file = file_of(sq) + df
                if not 0 <= pawn_file < 8:
                    continue
                piece = board[make_square(pawn_file, pawn_rank)]
                if (
                    piece is not None
                    and piece.color == by_color
                    and piece.piece_type == PieceType.PAWN
                ):
                    return True

        if self._ray_hits(_BISHOP_RAYS[sq], by_color, _DIAGONAL_SLIDERS):
            return True
        return self._ray_hits(_ROOK_RAYS[sq], by_color, _ORTHOGONAL_SLIDERS)

    def _ray_hits(
        self,
        rays: tuple[tuple[Square, ...], ...],
        by_color: Color,
        sliders: tuple[PieceType, ...],
    ) -> bool:
        board = self._board
        for ray in rays:
            for to_sq in ray:
                piece = board[to_sq]
                if piece is None:
                    continue
                if piece.color == by_color and piece.piece_type in sliders:
                    return True
                break
        return False

    # -- Piece-specific generators (private) -------------------------------

    def _gen_pawn(self, sq: Square, color: Color, moves: list[Move]) -> None:
        board = self._board
        file_idx = file_of(sq)
        rank_idx = rank_of(sq)
        step = 1 if color == Color.WHITE else -1
        start_rank = 1 if color == Color.WHITE else 6
        last_rank = 7 if color == Color.WHITE else 0
        next_rank = rank_idx + step
        if not 0 <= next_rank < 8:
            return

        one_step = make_square(file_idx, next_rank)
        if board.is_empty(one_step):
            if next_rank == last_rank:
                for pt in PROMOTION_TYPES:
                    moves.append(
                        Move(sq, one_step, PieceType.PAWN, color, promotion=pt)
                    )
            else:
                moves.append(Move(sq, one_step, PieceType.PAWN, color))
                if rank_idx == start_rank:
                    two_step = make_square(file_idx, rank_idx + 2 * step)
                    if board.is_empty(two_step):
                        moves.append(
                            Move(
                                sq,
                                two_step,
                                PieceType.PAWN,
                                color,
                                flag=MoveFlag.DOUBLE_PAWN,
                            )
                        )

        for df in (-1, 1):
            cap_file = file_idx + df
            if not 0 <= cap_file < 8:
                continue
            cap_sq = make_square(cap_file, next_rank)
            target = board[cap_sq]
            if target is not None and target.color != color:
                if next_rank == last_rank:
                    for pt in PROMOTION_TYPES:
                        moves.append(
                            Move(
                                sq,
                                cap_sq,
                                PieceType.PAWN,
                                color,
                                captured=target.piece_type,
                                promotion=pt,
                            )
                        )
                else:
                    moves.append(
                        Move(
                            sq,
                            cap_sq,
                            PieceType.PAWN,
                            color,
                            captured=target.piece_type,
                        )
                    )
            elif target is None and cap_sq == self._pos.en_passant:
                moves.append(
                    Move(
                        sq,
                        cap_sq,
                        PieceType.PAWN,
                        color,
                        captured=PieceType.PAWN,
                        flag=MoveFlag.EN_PASSANT,
                    )
                )

    def _gen_steps(
        self,
        sq: Square,
        color: Color,
        ptype: PieceType,
        targets: tuple[Square, ...],
        moves: list[Move],
    ) -> None:
        board = self._board
        for to_sq in targets:
            target = board[to_sq]
            if target is None:
                moves.append(Move(sq, to_sq, ptype, color))
            elif target.color != color:
                moves.append(
                    Move(sq, to_sq, ptype, color, captured=target.piece_type)
                )

    def _gen_sliding(
        self,
        sq: Square,
        color: Color,
        ptype: PieceType,
        rays: tuple[tuple[Square, ...], ...],
        moves: list[Move],
    ) -> None:
        board = self._board
        for ray in rays:
            for to_sq in ray:
                target = board[to_sq]
                if target is None:
                    moves.append(Move(sq, to_sq, ptype, color))
                    continue
                if target.color != color:
                    moves.append(
                        Move(sq, to_sq, ptype, color, captured=target.piece_type)
                    )
                break

    def _gen_castling(self, king_sq: Square, color: Color, moves: list[Move]) -> None:
        rank = _HOME_RANK[color]
        if king_sq != make_square(4, rank):
            return

        castling = self._pos.castling
        kingside = _KINGSIDE_RIGHT[color]
        queenside = _QUEENSIDE_RIGHT[color]
        if not castling & (kingside | queenside):
            return
        if self.is_in_check(color):
            return

        board = self._board
        opponent = color.opposite
        rook = Piece(color, PieceType.ROOK)

        if castling & kingside and board[make_square(7, rank)] == rook:
            f_sq = make_square(5, rank)
            g_sq = make_square(6, rank)
            if (
                board.is_empty(f_sq)
                and board.is_empty(g_sq)
                and not self.is_square_attacked(f_sq, opponent)
                and not self.is_square_attacked(g_sq, opponent)
            ):
                moves.append(
                    Move(
                        king_sq,
                        g_sq,
                        PieceType.KING,
                        color,
                        flag=MoveFlag.CASTLE_KINGSIDE,
                    )
                )

        if castling & queenside and board[make_square(0, rank)] == rook:
            b_sq = make_square(1, rank)
            c_sq = make_square(2, rank)
            d_sq = make_square(3, rank)
            if (
                board.is_empty(b_sq)
                and board.is_empty(c_sq)
                and board.is_empty(d_sq)
                and not self.is_square_attacked(c_sq, opponent)
                and not self.is_square_attacked(d_sq, opponent)
            ):
                moves.append(
                    Move(
                        king_sq,
                        c_sq,
                        PieceType.KING,
                        color,
                        flag=MoveFlag.CASTLE_QUEENSIDE,
                    )
                )
