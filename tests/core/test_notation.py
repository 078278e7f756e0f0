"""Tests for FEN, SAN and PGN notation."""

from datetime import date

import pytest

from knightly.core.enums import CastlingRights, Color, MoveFlag, PieceType
from knightly.core.move import Move
from knightly.core.notation import (
    STARTING_FEN,
    ParsedPgn,
    PgnMetadata,
    PgnMove,
    build_pgn,
    move_to_san,
    parse_pgn_game,
    parse_san,
    pgn_movetext_from_moves,
    position_from_fen,
    position_to_fen,
)
from knightly.core.piece import Piece
from knightly.core.types import E1, E3, E8, parse_square


def _play(pos, *sans: str) -> list[str]:
    """Play *sans* on *pos*; return the SAN regenerated for each move."""
    out: list[str] = []
    for san in sans:
        move = parse_san(pos, san)
        out.append(move_to_san(pos, move))
        pos.make_move(move)
    return out


# ── FEN ─────────────────────────────────────────────────────────────────────


class TestFenParsing:
    def test_starting_position(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        assert pos.side_to_move == Color.WHITE
        assert pos.castling == CastlingRights.ALL
        assert pos.en_passant is None
        assert pos.halfmove_clock == 0
        assert pos.fullmove_number == 1
        assert pos.board[E1] == Piece(Color.WHITE, PieceType.KING)
        assert pos.board[E8] == Piece(Color.BLACK, PieceType.KING)

    def test_en_passant_square(self) -> None:
        fen = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"
        assert position_from_fen(fen).en_passant == E3

    def test_partial_castling(self) -> None:
        fen = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w Kq - 0 1"
        pos = position_from_fen(fen)
        assert pos.castling == (
            CastlingRights.WHITE_KINGSIDE | CastlingRights.BLACK_QUEENSIDE
        )

    def test_missing_fields_take_defaults(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/8/4K3")
        assert pos.side_to_move == Color.WHITE
        assert pos.castling == CastlingRights.ALL
        assert pos.en_passant is None
        assert pos.halfmove_clock == 0
        assert pos.fullmove_number == 1

    def test_missing_clocks_only(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/8/4K3 b - -")
        assert pos.side_to_move == Color.BLACK
        assert pos.castling == CastlingRights.NONE
        assert pos.halfmove_clock == 0
        assert pos.fullmove_number == 1


class TestFenRoundTrip:
    @pytest.mark.parametrize(
        "fen",
        [
            STARTING_FEN,
            "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1",
            "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1",
            "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1",
            "4k3/8/8/8/8/8/8/4K3 b - - 37 81",
        ],
    )
    def test_round_trip(self, fen: str) -> None:
        assert position_to_fen(position_from_fen(fen)) == fen

    def test_after_moves(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        _play(pos, "e4", "c5", "Nf3")
        assert position_to_fen(pos) == (
            "rnbqkbnr/pp1ppppp/8/2p5/4P3/5N2/PPPP1PPP/RNBQKB1R b KQkq - 1 2"
        )


class TestFenErrors:
    @pytest.mark.parametrize(
        "fen",
        [
            "",
            "8/8/8 w - - 0 1",
            "4k3/8/8/8/8/8/8/4K3 w - - 0 1 extra",
            "4k3/8/8/8/8/8/8/4K2X w - - 0 1",
            "4k3/8/8/8/8/8/8/4K4 w - - 0 1",
            "4k3/8/8/8/8/8/8/4K2 w - - 0 1",
            "4k3/8/8/8/8/8/8/8 w - - 0 1",
            "4k3/8/8/8/8/8/8/3KK3 w - - 0 1",
            "4k3/8/8/8/8/8/8/4K3 x - - 0 1",
            "4k3/8/8/8/8/8/8/4K3 w KK - 0 1",
            "4k3/8/8/8/8/8/8/4K3 w KX - 0 1",
            "4k3/8/8/8/8/8/8/4K3 w - z9 0 1",
            "4k3/8/8/8/8/8/8/4K3 w - e3 0 1",
            "4k3/8/8/8/8/8/8/4K3 w - - -1 1",
            "4k3/8/8/8/8/8/8/4K3 w - - 0 0",
            "4k3/8/8/8/8/8/8/4K3 w - - x 1",
        ],
    )
    def test_rejected(self, fen: str) -> None:
        with pytest.raises(ValueError, match="Invalid FEN"):
            position_from_fen(fen)


# ── SAN ─────────────────────────────────────────────────────────────────────


class TestSanGeneration:
    def test_opening_moves(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        assert _play(pos, "e4", "d5", "exd5", "Qxd5", "Nc3") == [
            "e4",
            "d5",
            "exd5",
            "Qxd5",
            "Nc3",
        ]

    def test_file_disambiguation(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/8/R4RK1 w - - 0 1")
        move = parse_san(pos, "Rac1")
        assert move.from_sq == parse_square("a1")
        assert move_to_san(pos, move) == "Rac1"

    def test_rank_disambiguation(self) -> None:
        pos = position_from_fen("4k3/8/8/R7/8/8/8/R6K w - - 0 1")
        move = parse_san(pos, "R1a3")
        assert move.from_sq == parse_square("a1")
        assert move_to_san(pos, move) == "R1a3"

    def test_castling(self) -> None:
        fen = "r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1"
        pos = position_from_fen(fen)
        short = parse_san(pos, "O-O")
        assert short.flag == MoveFlag.CASTLE_KINGSIDE
        assert move_to_san(pos, short) == "O-O"
        long = parse_san(pos, "0-0-0")
        assert long.flag == MoveFlag.CASTLE_QUEENSIDE
        assert move_to_san(pos, long) == "O-O-O"

    def test_en_passant(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        sans = _play(pos, "e4", "a6", "e5", "d5", "exd6")
        assert sans[-1] == "exd6"

    def test_promotion_with_check(self) -> None:
        pos = position_from_fen("4k3/P7/8/8/8/8/8/4K3 w - - 0 1")
        move = parse_san(pos, "a8=Q")
        assert move.promotion == PieceType.QUEEN
        assert move_to_san(pos, move) == "a8=Q+"

    def test_underpromotion(self) -> None:
        pos = position_from_fen("4k3/P7/8/8/8/8/8/4K3 w - - 0 1")
        move = parse_san(pos, "a8N")
        assert move.promotion == PieceType.KNIGHT
        assert move_to_san(pos, move) == "a8=N"

    def test_promotion_defaults_to_queen(self) -> None:
        pos = position_from_fen("4k3/P7/8/8/8/8/8/4K3 w - - 0 1")
        assert parse_san(pos, "a8").promotion == PieceType.QUEEN

    def test_checkmate_suffix(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        assert _play(pos, "f3", "e5", "g4", "Qh4")[-1] == "Qh4#"

    def test_san_leaves_position_unchanged(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        move = Move(
            parse_square("e2"),
            parse_square("e4"),
            PieceType.PAWN,
            Color.WHITE,
            flag=MoveFlag.DOUBLE_PAWN,
        )
        move_to_san(pos, move)
        assert position_to_fen(pos) == STARTING_FEN


class TestSanParsing:
    def test_annotations_ignored(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        assert parse_san(pos, "Nf3!?") == parse_san(pos, "Nf3")

    def test_illegal_move(self) -> None:
        pos = position_from_fen(STARTING_FEN)
        for san in ("e5", "Ke2", "O-O", "Zz9", "Bb5"):
            with pytest.raises(ValueError, match="Illegal move"):
                parse_san(pos, san)

    def test_ambiguous_move(self) -> None:
        pos = position_from_fen("4k3/8/8/8/8/8/8/R4RK1 w - - 0 1")
        with pytest.raises(ValueError, match="Ambiguous move"):
            parse_san(pos, "Rc1")


# ── PGN ─────────────────────────────────────────────────────────────────────


class TestPgnWriting:
    def test_movetext(self) -> None:
        moves = [PgnMove("e4"), PgnMove("e5"), PgnMove("Nf3")]
        assert pgn_movetext_from_moves(moves, "1-0") == "1. e4 e5 2. Nf3 1-0"

    def test_movetext_black_first(self) -> None:
        moves = [PgnMove("e5"), PgnMove("Nf3")]
        assert pgn_movetext_from_moves(moves, "*", first_ply=1) == "1... e5 2. Nf3 *"

    def test_movetext_later_start(self) -> None:
        moves = [PgnMove("Kd2")]
        assert pgn_movetext_from_moves(moves, "*", first_ply=40) == "21. Kd2 *"

    def test_build_pgn(self) -> None:
        text = build_pgn(
            {"Event": "Club \"Open\"", "Result": "*"},
            ["e4", "e5"],
            "*",
            comments=["best by test", None],
        )
        lines = text.splitlines()
        assert lines[0] == '[Event "Club \\"Open\\""]'
        assert lines[1] == '[Result "*"]'
        assert lines[2] == ""
        assert lines[3] == "1. e4 {best by test} e5 *"

    def test_comment_length_mismatch(self) -> None:
        with pytest.raises(ValueError):
            build_pgn({}, ["e4", "e5"], "*", comments=["x"])


class TestPgnParsing:
    def test_full_game(self) -> None:
        text = (
            '[Event "Test"]\n'
            '[White "A \\"B\\" C"]\n'
            '[Result "1-0"]\n'
            "\n"
            "1. e4 {King pawn} e5 2.Nf3 $1 (2. f4 exf4) Nc6 ; main line\n"
            "3. Bb5 a6 1-0\n"
        )
        parsed = parse_pgn_game(text)
        assert parsed.headers["Event"] == "Test"
        assert parsed.headers["White"] == 'A "B" C'
        assert [m.san for m in parsed.moves] == ["e4", "e5", "Nf3", "Nc6", "Bb5", "a6"]
        assert parsed.moves[0].comment == "King pawn"
        assert parsed.moves[3].comment == "main line"
        assert parsed.result_token == "1-0"

    def test_result_falls_back_to_header(self) -> None:
        parsed = parse_pgn_game('[Result "0-1"]\n\n1. e4 e5\n')
        assert parsed.result_token == "0-1"

    def test_bad_header(self) -> None:
        with pytest.raises(ValueError, match="Invalid PGN header"):
            parse_pgn_game('[Event "unterminated]\n\n1. e4 *\n')

    def test_start_fen(self) -> None:
        fen = "4k3/8/8/8/8/8/4P3/4K3 b - - 0 1"
        parsed = ParsedPgn({"SetUp": "1", "FEN": fen}, [], "*")
        assert parsed.start_fen == fen
        parsed = ParsedPgn({"SetUp": "0", "FEN": fen}, [], "*")
        assert parsed.start_fen is None
        assert ParsedPgn(headers={}, moves=[], result_token="*").start_fen is None

    def test_written_game_reads_back(self) -> None:
        text = build_pgn(
            {"Event": "x"}, ["d4", "d5", "c4"], "*", comments=[None, "Slav?", None]
        )
        parsed = parse_pgn_game(text)
        assert [m.san for m in parsed.moves] == ["d4", "d5", "c4"]
        assert parsed.moves[1].comment == "Slav?"


class TestPgnMetadata:
    def test_defaults(self) -> None:
        headers = PgnMetadata().headers("*", today=date(2024, 3, 5))
        assert list(headers) == [
            "Event", "Site", "Date", "Round", "White", "Black", "Result",
        ]
        assert headers["Event"] == "Casual Game"
        assert headers["Site"] == "Knightly"
        assert headers["Date"] == "2024.03.05"
        assert headers["Round"] == "-"
        assert headers["White"] == "?"
        assert headers["Black"] == "?"
        assert headers["Result"] == "*"

    def test_overrides(self) -> None:
        meta = PgnMetadata(event="Final", white="Ann", black="Bo", date="2020.01.01")
        headers = meta.headers("1-0")
        assert headers["Event"] == "Final"
        assert headers["White"] == "Ann"
        assert headers["Date"] == "2020.01.01"
        assert headers["Result"] == "1-0"
