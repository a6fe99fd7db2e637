"""Tests for notices, placeholder rendering and push text."""

from __future__ import annotations

from decimal import Decimal

import pytest

from payment_relay.notifications.events import TransactionNotice
from payment_relay.notifications.templates import (
    compose_push,
    first_name,
    format_brl,
    render,
)


def _notice(**overrides) -> TransactionNotice:
    values = {
        "transaction_id": "tx-42",
        "type": "pix",
        "status": "paid",
        "amount": Decimal("19.90"),
        "customer_name": "Maria Aparecida Silva",
        "action": "updated",
    }
    values.update(overrides)
    return TransactionNotice(**values)


class TestFormatBrl:
    @pytest.mark.parametrize(
        ("amount", "expected"),
        [
            (Decimal("19.9"), "R$ 19,90"),
            (Decimal(0), "R$ 0,00"),
            (Decimal("1234.5"), "R$ 1.234,50"),
            (Decimal("1000000"), "R$ 1.000.000,00"),
            (Decimal("0.005"), "R$ 0,01"),
            (7, "R$ 7,00"),
        ],
    )
    def test_format(self, amount, expected) -> None:
        assert format_brl(amount) == expected


class TestFirstName:
    def test_first_token(self) -> None:
        assert first_name("  Maria  Silva ") == "Maria"

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_default(self, name) -> None:
        assert first_name(name) == "Cliente"


class TestRender:
    def test_all_placeholders(self) -> None:
        text = render("{tipo}: {nome} / {primeiro_nome} / {valor}", _notice())
        assert text == "PIX: Maria Aparecida Silva / Maria / R$ 19,90"

    def test_first_name_and_value(self) -> None:
        notice = _notice(customer_name="Maria Silva")
        assert render("Olá {primeiro_nome}, valor {valor}", notice) == "Olá Maria, valor R$ 19,90"

    def test_repeated_and_unknown_placeholders(self) -> None:
        text = render("{valor} {valor} {pedido}", _notice())
        assert text == "R$ 19,90 R$ 19,90 {pedido}"

    def test_missing_customer_name(self) -> None:
        text = render("{nome}|{primeiro_nome}", _notice(customer_name=None))
        assert text == "Cliente|Cliente"

    @pytest.mark.parametrize(
        ("tx_type", "label"), [("boleto", "Boleto"), ("pix", "PIX"), ("cartao", "Cartão")]
    )
    def test_type_labels(self, tx_type, label) -> None:
        assert render("{tipo}", _notice(type=tx_type)) == label


class TestNotice:
    def test_event_type(self) -> None:
        assert _notice(type="boleto", status="generated").event_type == "boleto_generated"

    def test_tag_for_created(self) -> None:
        assert _notice(action="created").tag == "tx-tx-42"

    def test_tag_for_update_includes_status(self) -> None:
        assert _notice(action="updated", status="paid").tag == "tx-tx-42-paid"

    def test_to_dict(self) -> None:
        data = _notice().to_dict()
        assert data["amount"] == "19.90"
        assert data["transaction_id"] == "tx-42"


class TestComposePush:
    def test_title_and_body(self) -> None:
        message = compose_push(_notice(customer_name="Ana Souza", amount=Decimal(50)))
        assert message.title == "PIX pago"
        assert message.body == "Ana Souza - R$ 50,00"
        assert message.tag == "tx-tx-42-paid"

    def test_boleto_generated_for_unknown_customer(self) -> None:
        message = compose_push(
            _notice(type="boleto", status="generated", customer_name=None, action="created")
        )
        assert message.title == "Boleto gerado"
        assert message.body.startswith("Cliente - ")
