from django.urls import path

from . import views

app_name = "billing_core"

urlpatterns = [
    path("receipts/manual/", views.manual_receipt_view, name="manual-receipt"),
    path("payments/<int:payment_id>/settle/", views.settle_payment_view,
         name="settle-payment"),
]
