# tests/conftest.py

import pytest

PLAYER_HEADERS = ("Player", "Nat", "Pos", "Year", "Tal", "Mas", "Price")


def player_row(pid, name, price, mas=70, age=25, tal=5, nat="Spain", pos="Cf"):
    return (
        "<tr>"
        f'<td><a href="/player/{pid}">{name}</a></td>'
        f'<td><img src="/flags/{nat}.png" alt="{nat}"></td>'
        f"<td>{pos}</td><td>{age}</td><td>{tal}</td><td>{mas}</td><td>{price}</td>"
        "</tr>"
    )


def players_table(rows, headers=PLAYER_HEADERS, attrs=""):
    head = "".join(f"<th>{h}</th>" for h in headers)
    return f"<table {attrs}><thead><tr>{head}</tr></thead><tbody>{''.join(rows)}</tbody></table>"


def page(*tables):
    return f"<html><body><div class='menu'><table><tr><td>Menu</td></tr></table></div>{''.join(tables)}</body></html>"


@pytest.fixture
def players_page():
    """players_page(count, first_id=0, price=...) -> full HTML page with a players table."""
    def build(count, first_id=0, price=lambda i: 500 + i, mas=lambda i: 70 + (i % 5)):
        rows = [
            player_row(first_id + i, f"Player {first_id + i}", f"{price(first_id + i):,}", mas(first_id + i))
            for i in range(count)
        ]
        return page(players_table(rows))
    return build
