from django.urls import path

from .views import MovementListCreateView, ReservationListView

urlpatterns = [
    path("movements/", MovementListCreateView.as_view(), name="movement-list"),
    path("reservations/", ReservationListView.as_view(), name="reservation-list"),
]
