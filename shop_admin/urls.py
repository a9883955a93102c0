from django.urls import path
from . import views

urlpatterns = [
    path("dashboard/", views.dashboard, name="admin_dashboard"),
    path("reports/sales/", views.sales_report, name="admin_sales_report"),
]
