"""
Testes para app/scraping/numbers.py

Cobre:
- Inteiros simples
- Sufixos K / M / B (maiúsculos e minúsculos)
- Separadores de milhar e espaços
- Arredondamento para o inteiro mais próximo
- Entradas inválidas → None
"""

import pytest

from app.scraping.numbers import parse_short_number


@pytest.mark.parametrize(
    "text, expected",
    [
        ("100", 100),
        ("15400", 15400),
        ("15.4K", 15400),
        ("1K", 1000),
        ("2.5k", 2500),
        ("1.2M", 1200000),
        ("3m", 3000000),
        ("1B", 1000000000),
        ("15,400", 15400),
        ("1,200,000", 1200000),
        ("1.5 K", 1500),
    ],
)
def test_parse_short_number(text, expected):
    assert parse_short_number(text) == expected


def test_parse_rounds_to_nearest_integer():
    assert parse_short_number("1.2345K") == 1235
    assert parse_short_number("2.5") == 3


def test_parse_avoids_float_drift():
    """1.15K não pode virar 1149 por erro de ponto flutuante."""
    assert parse_short_number("1.15K") == 1150


@pytest.mark.parametrize("text", ["abc", "", "K", "1.2.3", "12X", "-5", None])
def test_parse_invalid_returns_none(text):
    assert parse_short_number(text) is None
