"""
URL configuration for reports.
"""

from django.urls import path

from . import views

app_name = 'reports'

urlpatterns = [
    # List / create
    path('', views.ReportListCreateView.as_view(), name='list-create'),

    # Single report with history
    path('<uuid:report_id>/', views.ReportDetailView.as_view(), name='detail'),

    # Status transition
    path('<uuid:report_id>/transition/', views.ReportTransitionView.as_view(), name='transition'),
]
