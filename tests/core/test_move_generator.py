"""Perft and move-generation tests.

Perft reference values: https://www.chessprogramming.org/Perft_Results
"""

import pytest

from knightly.core.enums import Color, MoveFlag, PieceType
from knightly.core.move_generator import MoveGenerator
from knightly.core.notation import STARTING_FEN, position_from_fen
from knightly.core.position import Position
from knightly.core.types import parse_square


def perft(position: Position, depth: int) -> int:
    """Count leaf nodes at *depth* using make/unmake."""
    if depth == 0:
        return 1
    moves = MoveGenerator(position).generate_legal_moves()
    if depth == 1:
        return len(moves)
    nodes = 0
    for move in moves:
        position.make_move(move)
        nodes += perft(position, depth - 1)
        position.unmake_move(move)
    return nodes


def _uci(moves: list) -> list[str]:
    return [move.uci for move in moves]


# ── Starting position ────────────────────────────────────────────────────────


class TestPerftStarting:
    def test_depth_1(self) -> None:
        assert perft(position_from_fen(STARTING_FEN), 1) == 20

    def test_depth_2(self) -> None:
        assert perft(position_from_fen(STARTING_FEN), 2) == 400

    def test_depth_3(self) -> None:
        assert perft(position_from_fen(STARTING_FEN), 3) == 8_902

    @pytest.mark.slow
    def test_depth_4(self) -> None:
        assert perft(position_from_fen(STARTING_FEN), 4) == 197_281


# ── Kiwipete (rich in tactics: castling, ep, promotions) ─────────────────────

KIWIPETE = "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1"


class TestPerftKiwipete:
    def test_depth_1(self) -> None:
        assert perft(position_from_fen(KIWIPETE), 1) == 48

    def test_depth_2(self) -> None:
        assert perft(position_from_fen(KIWIPETE), 2) == 2_039

    @pytest.mark.slow
    def test_depth_3(self) -> None:
        assert perft(position_from_fen(KIWIPETE), 3) == 97_862


# ── Position 3: en-passant + promotion edge cases ───────────────────────────

POS3 = "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1"


class TestPerftPos3:
    def test_depth_2(self) -> None:
        assert perft(position_from_fen(POS3), 2) == 191

    def test_depth_3(self) -> None:
        assert perft(position_from_fen(POS3), 3) == 2_812


# ── Position 4: mirrored, many promotions ────────────────────────────────────

POS4 = "r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1"


class TestPerftPos4:
    def test_depth_1(self) -> None:
        assert perft(position_from_fen(POS4), 1) == 6

    def test_depth_2(self) -> None:
        assert perft(position_from_fen(POS4), 2) == 264

    @pytest.mark.slow
    def test_depth_3(self) -> None:
        assert perft(position_from_fen(POS4), 3) == 9_467


# ── Position 5 ───────────────────────────────────────────────────────────────

POS5 = "rnbq1k1r/pp1Pbppp/2p5/8/2B5/8/PPP1NnPP/RNBQK2R w KQ - 1 8"


class TestPerftPos5:
    def test_depth_1(self) -> None:
        assert perft(position_from_fen(POS5), 1) == 44

    def test_depth_2(self) -> None:
        assert perft(position_from_fen(POS5), 2) == 1_486


# ── Ordering and classification ──────────────────────────────────────────────


class TestGenerationOrder:
    def test_start_position_order(self) -> None:
        moves = MoveGenerator(Position()).generate_legal_moves()
        # Rank 2 pawns come before the rank 1 knights; push before double push.
        assert _uci(moves)[:4] == ["a2a3", "a2a4", "b2b3", "b2b4"]
        assert _uci(moves)[-4:] == ["b1a3", "b1c3", "g1f3", "g1h3"]

    def test_black_pieces_scanned_from_rank_8(self) -> None:
        pos = position_from_fen(
            "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"
        )
        moves = _uci(MoveGenerator(pos).generate_legal_moves())
        assert moves[:4] == ["b8a6", "b8c6", "g8f6", "g8h6"]

    def test_promotion_order(self) -> None:
        pos = position_from_fen("4k3/1P6/8/8/8/8/8/4K3 w - - 0 1")
        moves = MoveGenerator(pos).generate_legal_moves(parse_square("b7"))
        assert [m.promotion for m in moves] == [
            PieceType.QUEEN, PieceType.ROOK, PieceType.BISHOP, PieceType.KNIGHT,
        ]

    def test_capture_promotions_carry_captured_type(self) -> None:
        pos = position_from_fen("n3k3/1P6/8/8/8/8/8/4K3 w - - 0 1")
        moves = MoveGenerator(pos).generate_legal_moves(parse_square("b7"))
        captures = [m for m in moves if m.to_sq == parse_square("a8")]
        assert len(captures) == 4
        assert all(m.captured == PieceType.KNIGHT for m in captures)

    def test_from_square_filter(self) -> None:
        moves = MoveGenerator(Position()).generate_legal_moves(parse_square("g1"))
        assert _uci(moves) == ["g1f3", "g1h3"]

    def test_from_square_without_own_piece(self) -> None:
        gen = MoveGenerator(Position())
        assert gen.generate_legal_moves(parse_square("e4")) == []
        assert gen.generate_legal_moves(parse_square("e7")) == []

    def test_double_push_flag(self) -> None:
        moves = MoveGenerator(Position()).generate_legal_moves(parse_square("e2"))
        assert [m.flag for m in moves] == [MoveFlag.NORMAL, MoveFlag.DOUBLE_PAWN]
        assert all(m.piece == PieceType.PAWN and m.color == Color.WHITE for m in moves)

    def test_en_passant_generated(self) -> None:
        pos = position_from_fen("4k3/8/8/3pP3/8/8/8/4K3 w - d6 0 1")
        moves = MoveGenerator(pos).generate_legal_moves(parse_square("e5"))
        ep = [m for m in moves if m.flag == MoveFlag.EN_PASSANT]
        assert len(ep) == 1
        assert ep[0].captured == PieceType.PAWN


class TestLegality:
    def test_pinned_piece_cannot_move(self) -> None:
        pos = position_from_fen("4r1k1/8/8/8/8/8/4N3/4K3 w - - 0 1")
        assert MoveGenerator(pos).generate_legal_moves(parse_square("e2")) == []

    def test_no_legal_move_leaves_king_attacked(self) -> None:
        pos = position_from_fen(KIWIPETE)
        gen = MoveGenerator(pos)
        for move in gen.generate_legal_moves():
            pos.make_move(move)
            assert not gen.is_in_check(Color.WHITE), f"{move} leaves king in check"
            pos.unmake_move(move)

    def test_square_attacked_by_pawn_direction(self) -> None:
        pos = position_from_fen("4k3/8/8/3p4/8/8/8/4K3 w - - 0 1")
        gen = MoveGenerator(pos)
        assert gen.is_square_attacked(parse_square("e4"), Color.BLACK)
        assert gen.is_square_attacked(parse_square("c4"), Color.BLACK)
        assert not gen.is_square_attacked(parse_square("e6"), Color.BLACK)

    def test_slider_attack_blocked(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/8/R3K2r w - - 0 1")
        gen = MoveGenerator(pos)
        assert gen.is_square_attacked(parse_square("f1"), Color.BLACK)
        assert not gen.is_square_attacked(parse_square("d1"), Color.BLACK)


class TestCastlingGeneration:
    FEN = "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"

    def _castles(self, fen: str) -> set[MoveFlag]:
        moves = MoveGenerator(position_from_fen(fen)).generate_legal_moves()
        return {m.flag for m in moves if m.is_castling}

    def test_both_sides_available(self) -> None:
        assert self._castles(self.FEN) == {
            MoveFlag.CASTLE_KINGSIDE,
            MoveFlag.CASTLE_QUEENSIDE,
        }

    def test_not_out_of_check(self) -> None:
        assert self._castles("r3k2r/8/8/8/8/8/4r3/R3K2R w KQkq - 0 1") == set()

    def test_not_through_attacked_square(self) -> None:
        castles = self._castles("r3k2r/8/8/8/8/8/5r2/R3K2R w KQkq - 0 1")
        assert castles == {MoveFlag.CASTLE_QUEENSIDE}

    def test_queenside_b_file_may_be_attacked(self) -> None:
        castles = self._castles("r3k2r/8/8/8/8/8/1r6/R3K2R w KQkq - 0 1")
        assert MoveFlag.CASTLE_QUEENSIDE in castles

    def test_blocked_by_piece(self) -> None:
        castles = self._castles("r3k2r/8/8/8/8/8/8/RN2K1NR w KQkq - 0 1")
        assert castles == set()

    def test_requires_right(self) -> None:
        assert self._castles("r3k2r/8/8/8/8/8/8/R3K2R w Kkq - 0 1") == {
            MoveFlag.CASTLE_KINGSIDE
        }

    def test_requires_rook_on_corner(self) -> None:
        # Rights claimed by the FEN, but the h1 rook is gone.
        castles = self._castles("r3k2r/8/8/8/8/8/8/R3K3 w KQkq - 0 1")
        assert castles == {MoveFlag.CASTLE_QUEENSIDE}
