"""Tests for Orders CRUD operations and validation."""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from orderflow.api.v1.orders import create_order, delete_order, get_order, list_orders, update_order
from orderflow.schemas.order import OrderCreate


@pytest.fixture
def order_payload():
    return OrderCreate(
        order_no="SO-001",
        customer_name="Northwind Fixtures",
        order_date=datetime(2023, 1, 10, tzinfo=timezone.utc),
        quantity=250,
    )


# ---------------------------------------------------------------------------
# Schema Validation Tests
# ---------------------------------------------------------------------------


class TestOrderSchemaValidation:
    """Test OrderCreate schema validation rules."""

    def test_default_status(self, order_payload):
        assert order_payload.status == "New"

    def test_quantity_must_be_positive(self):
        with pytest.raises(Exception):
            OrderCreate(
                order_no="SO-002",
                customer_name="Customer",
                order_date=datetime.now(timezone.utc),
                quantity=0,
            )

    def test_order_no_length(self):
        with pytest.raises(Exception):
            OrderCreate(
                order_no="X" * 51,
                customer_name="Customer",
                order_date=datetime.now(timezone.utc),
                quantity=1,
            )


# ---------------------------------------------------------------------------
# Endpoint Tests
# ---------------------------------------------------------------------------


class TestOrderEndpoints:
    @pytest.mark.asyncio
    async def test_list_orders(self, mock_db, order_factory):
        mock_result = MagicMock()
        mock_result.scalars.return_value.all.return_value = [order_factory.create()]
        mock_db.execute = AsyncMock(return_value=mock_result)

        result = await list_orders(
            status_filter="New",
            customer_name="Cust",
            order_date_from=None,
            order_date_to=None,
            skip=0,
            limit=50,
            db=mock_db,
        )
        assert len(result) == 1

    @pytest.mark.asyncio
    async def test_create_order(self, mock_db, order_payload):
        order = await create_order(payload=order_payload, db=mock_db)

        assert order.order_no == "SO-001"
        mock_db.add.assert_called_once()
        mock_db.flush.assert_awaited_once()
        mock_db.refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_get_not_found(self, mock_db):
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = None
        mock_db.execute = AsyncMock(return_value=mock_result)

        with pytest.raises(Exception) as exc_info:
            await get_order(order_id=uuid.uuid4(), db=mock_db)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_update_order(self, mock_db, order_factory, order_payload):
        order = order_factory.create(quantity=1)
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = order
        mock_db.execute = AsyncMock(return_value=mock_result)

        result = await update_order(order_id=order.id, payload=order_payload, db=mock_db)
        assert result.quantity == 250

    @pytest.mark.asyncio
    async def test_delete_order(self, mock_db, order_factory):
        order = order_factory.create()
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = order
        mock_db.execute = AsyncMock(return_value=mock_result)

        await delete_order(order_id=order.id, db=mock_db)
        mock_db.delete.assert_awaited_once_with(order)
