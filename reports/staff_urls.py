"""
URL configuration for the admin and superadmin route groups.
"""

from django.urls import path

from authentication.views import AdminCreateView, UserListView
from . import views

admin_urlpatterns = ([
    path('reports/queue/', views.AdminQueueView.as_view(), name='queue'),
    path('reports/assigned/', views.AssignedReportListView.as_view(), name='assigned'),
], 'staff')

superadmin_urlpatterns = ([
    path('reports/escalated/', views.EscalatedReportListView.as_view(), name='escalated'),
    path('users/', UserListView.as_view(), name='users'),
    path('admins/', AdminCreateView.as_view(), name='create-admin'),
], 'superadmin')
