import pytest


@pytest.fixture()
def board(alice, make_board):
    return make_board(alice, columns=("Todo", "Doing", "Done"))


def add_card(client, headers, column_id, title, **extra):
    res = client.post(f"/v1/columns/{column_id}/cards", json={"title": title, **extra}, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


def cards_in(data: dict, column_name: str) -> list[tuple[str, int]]:
    column = next(c for c in data["columns"] if c["name"] == column_name)
    return [(card["title"], card["position"]) for card in column["cards"]]


def test_new_card_goes_last(client, alice, board):
    doing = board["columns"][1]["id"]
    add_card(client, alice, doing, "A")
    add_card(client, alice, doing, "B")
    card = add_card(client, alice, doing, "C")
    assert card["position"] == 2


def test_card_defaults(client, alice, board):
    card = add_card(client, alice, board["columns"][0]["id"], "Write docs")
    assert card["priority"] == "medium"
    assert card["description"] == ""


def test_invalid_priority_rejected(client, alice, board):
    res = client.post(
        f"/v1/columns/{board['columns'][0]['id']}/cards",
        json={"title": "X", "priority": "urgent"},
        headers=alice,
    )
    assert res.status_code == 400
    assert "priority" in res.json()["details"]


def test_update_card(client, alice, board):
    card = add_card(client, alice, board["columns"][0]["id"], "Draft")
    res = client.patch(
        f"/v1/cards/{card['id']}",
        json={"title": "Final", "description": "ship it", "priority": "high"},
        headers=alice,
    )
    assert res.status_code == 200
    body = res.json()
    assert (body["title"], body["description"], body["priority"]) == ("Final", "ship it", "high")
    assert body["position"] == card["position"]


def test_reorder_within_column(client, alice, board, view):
    todo = board["columns"][0]["id"]
    cards = [add_card(client, alice, todo, t) for t in ("A", "B", "C")]

    res = client.post("/v1/cards/reorder", json={"cardId": cards[2]["id"], "position": 0}, headers=alice)
    assert res.json() == {"success": True}
    assert cards_in(view(board["id"], alice), "Todo") == [("C", 0), ("A", 1), ("B", 2)]

    res = client.post(
        "/v1/cards/reorder",
        json={"cardId": cards[2]["id"], "columnId": todo, "position": 2},
        headers=alice,
    )
    assert res.status_code == 200
    assert cards_in(view(board["id"], alice), "Todo") == [("A", 0), ("B", 1), ("C", 2)]


def test_move_card_across_columns(client, alice, board, view):
    todo, doing = board["columns"][0]["id"], board["columns"][1]["id"]
    a, b, c = (add_card(client, alice, todo, t) for t in ("A", "B", "C"))
    add_card(client, alice, doing, "X")
    add_card(client, alice, doing, "Y")

    res = client.post("/v1/cards/reorder", json={"cardId": b["id"], "columnId": doing, "position": 1}, headers=alice)
    assert res.status_code == 200

    data = view(board["id"], alice)
    assert cards_in(data, "Todo") == [("A", 0), ("C", 1)]
    assert cards_in(data, "Doing") == [("X", 0), ("B", 1), ("Y", 2)]


def test_move_card_to_empty_column(client, alice, board, view):
    todo, done = board["columns"][0]["id"], board["columns"][2]["id"]
    card = add_card(client, alice, todo, "A")
    client.post("/v1/cards/reorder", json={"cardId": card["id"], "columnId": done, "position": 5}, headers=alice)

    data = view(board["id"], alice)
    assert cards_in(data, "Todo") == []
    assert cards_in(data, "Done") == [("A", 0)]


def test_move_card_to_other_board_rejected(client, alice, board, make_board):
    other = make_board(alice, name="Other", columns=("Inbox",))
    card = add_card(client, alice, board["columns"][0]["id"], "A")
    res = client.post(
        "/v1/cards/reorder",
        json={"cardId": card["id"], "columnId": other["columns"][0]["id"], "position": 0},
        headers=alice,
    )
    assert res.status_code == 400


def test_move_card_to_inaccessible_column_denied(client, alice, bob, board, make_board):
    theirs = make_board(bob, name="Bob's", columns=("Inbox",))
    card = add_card(client, alice, board["columns"][0]["id"], "A")
    res = client.post(
        "/v1/cards/reorder",
        json={"cardId": card["id"], "columnId": theirs["columns"][0]["id"], "position": 0},
        headers=alice,
    )
    assert res.status_code == 403


def test_delete_card_reenumerates(client, alice, board, view):
    todo = board["columns"][0]["id"]
    cards = [add_card(client, alice, todo, t) for t in ("A", "B", "C")]
    assert client.delete(f"/v1/cards/{cards[0]['id']}", headers=alice).json() == {"success": True}
    assert cards_in(view(board["id"], alice), "Todo") == [("B", 0), ("C", 1)]
    assert client.delete(f"/v1/cards/{cards[0]['id']}", headers=alice).status_code == 404


def test_stranger_cannot_touch_cards(client, alice, bob, board):
    card = add_card(client, alice, board["columns"][0]["id"], "A")
    assert client.patch(f"/v1/cards/{card['id']}", json={"title": "X"}, headers=bob).status_code == 403
    assert client.delete(f"/v1/cards/{card['id']}", headers=bob).status_code == 403
    res = client.post("/v1/cards/reorder", json={"cardId": card["id"], "position": 0}, headers=bob)
    assert res.status_code == 403
    res = client.post(f"/v1/columns/{board['columns'][0]['id']}/cards", json={"title": "X"}, headers=bob)
    assert res.status_code == 403
