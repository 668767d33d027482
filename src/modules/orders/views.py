"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.  Domain
exceptions propagate to ``domain_exception_handler``, which maps each
error kind to its HTTP status in one place; the view never catches them.
"""

from __future__ import annotations

from django.apps import apps
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.authentication import Actor
from modules.core.permissions import IsAdminActor
from modules.orders.dtos import CreateOrderDTO, OrderPage, UpdateOrderDTO
from modules.orders.models import Order
from modules.orders.notifications import get_notifier
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderListQuerySerializer,
    OrderSerializer,
    OrderStatsQuerySerializer,
    OrderStatsSerializer,
    UpdateOrderSerializer,
)
from modules.orders.services import OrderService

ADMIN_ACTIONS = {"list", "destroy", "stats"}


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repository, notifier and event bus
    (DIP).  Does **not** extend ``ModelViewSet``: all ORM access goes
    through the service/repository layer.
    """

    queryset = Order.objects.all()
    serializer_class = OrderSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            notifier=get_notifier(),
            event_bus=apps.get_app_config("orders").event_bus,
        )

    def get_permissions(self):
        if self.action in ADMIN_ACTIONS:
            return [IsAdminActor()]
        return [IsAuthenticated()]

    @property
    def actor(self) -> Actor:
        return Actor.from_user(self.request.user)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @extend_schema(request=CreateOrderSerializer, responses={201: OrderSerializer})
    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/"""
        serializer = CreateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        dto = CreateOrderDTO.model_validate(serializer.validated_data)
        actor = self.actor
        order = self._service.create_order(dto, actor.id, actor.email)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    @extend_schema(parameters=[OrderListQuerySerializer])
    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/ (admin)"""
        query = OrderListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        page = self._service.get_all_orders(
            limit=query.validated_data.get("limit"),
            cursor=query.validated_data.get("cursor"),
            status=query.validated_data.get("status"),
        )
        return self._page_response(page)

    @extend_schema(parameters=[OrderListQuerySerializer])
    @action(detail=False, methods=["get"])
    def mine(self, request: Request) -> Response:
        """GET /api/v1/orders/mine/"""
        query = OrderListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        page = self._service.get_user_orders(
            self.actor.id,
            limit=query.validated_data.get("limit"),
            cursor=query.validated_data.get("cursor"),
        )
        return self._page_response(page)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        actor = self.actor
        order = self._service.get_order(pk, actor.id, is_admin=actor.is_admin)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Update / Cancel / Delete
    # ------------------------------------------------------------------

    @extend_schema(request=UpdateOrderSerializer, responses={200: OrderSerializer})
    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Customers may change ``notes`` and ``shipping_address`` of their own
        pending orders; admins may also set status, payment status and
        tracking.
        """
        serializer = UpdateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        patch = UpdateOrderDTO.model_validate(serializer.validated_data)
        actor = self.actor
        order = self._service.update_order(pk, patch, actor.id, is_admin=actor.is_admin)
        return Response(OrderSerializer(order).data)

    @extend_schema(request=None, responses={200: OrderSerializer})
    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/"""
        actor = self.actor
        order = self._service.cancel_order(pk, actor.id, is_admin=actor.is_admin)
        return Response(OrderSerializer(order).data)

    @extend_schema(responses={204: OpenApiResponse(description="Order deleted")})
    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/orders/{pk}/ (admin)"""
        self._service.delete_order(pk, actor_id=self.actor.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    @extend_schema(parameters=[OrderStatsQuerySerializer], responses=OrderStatsSerializer)
    @action(detail=False, methods=["get"])
    def stats(self, request: Request) -> Response:
        """GET /api/v1/orders/stats/ (admin)"""
        query = OrderStatsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        stats = self._service.get_order_stats(
            start_date=query.validated_data.get("start_date"),
            end_date=query.validated_data.get("end_date"),
        )
        return Response(OrderStatsSerializer(stats.model_dump()).data)

    @staticmethod
    def _page_response(page: OrderPage) -> Response:
        return Response(
            {
                "data": OrderSerializer(page.items, many=True).data,
                "meta": {
                    "count": page.count,
                    "has_more": page.has_more,
                    "next_cursor": page.next_cursor,
                },
            }
        )
