"""
archalley/urls/competition_urls.py
namespace = "competitions"
"""
from django.urls import path
from ..views.cart_views import (
    CartAddView,
    CartItemView,
    CartView,
    CheckoutView,
    MyRegistrationsView,
)
from ..views.payment_views import PayHereNotifyView

app_name = "competitions"

urlpatterns = [
    path("cart/",                     CartView.as_view(),            name="cart"),
    path("cart/add/",                 CartAddView.as_view(),         name="cart-add"),
    path("cart/items/<int:item_id>/", CartItemView.as_view(),        name="cart-item"),
    path("checkout/",                 CheckoutView.as_view(),        name="checkout"),
    path("payment/notify/",           PayHereNotifyView.as_view(),   name="payhere-notify"),
    path("my-registrations/",         MyRegistrationsView.as_view(), name="my-registrations"),
]
