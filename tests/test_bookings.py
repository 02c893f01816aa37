from datetime import date
from fastapi import status

from travel_app.models.booking import (
    Booking,
    BookingStatus,
    FlightBooking,
    FlightStatus,
    HotelBooking,
    HotelBookingStatus,
    Itinerary,
)
from travel_app.models.notification import Notification
from tests.conf_tests import (  # pylint: disable=unused-import
    client,
    clear_db,
    test_db,
    fake_flights,
    test_user,
    auth_headers,
    owner_user,
    test_hotel,
    deluxe_room,
    standard_room,
    create_user,
    login_headers,
    valid_card,
    add_flight_to_cart,
    add_stay,
)


def checkout(headers, card=None):
    return client.post("/bookings/checkout", json={"creditCard": card or valid_card()}, headers=headers)


# pylint: disable-next=redefined-outer-name
def test_checkout_links_cart_into_itinerary(test_db, test_user, auth_headers, deluxe_room):
    flight = add_flight_to_cart(test_db, test_user)
    stay = add_stay(test_db, test_user, deluxe_room, date(2030, 6, 1), date(2030, 6, 4))

    response = checkout(auth_headers)
    assert response.status_code == status.HTTP_201_CREATED
    body = response.json()
    assert body["status"] == "CONFIRMED"
    assert body["userId"] == test_user.id
    itinerary = body["itinerary"]
    assert itinerary["status"] == "CONFIRMED"
    assert itinerary["bookingId"] == body["id"]
    assert [f["id"] for f in itinerary["flights"]] == [flight.id]
    assert [h["id"] for h in itinerary["hotels"]] == [stay.id]

    cart = client.get("/bookings/cart", headers=auth_headers)
    assert cart.status_code == status.HTTP_200_OK
    assert cart.json() == {"flights": [], "hotels": []}

    test_db.expire_all()
    assert test_db.get(FlightBooking, flight.id).itinerary_id == itinerary["id"]
    assert test_db.get(HotelBooking, stay.id).itinerary_id == itinerary["id"]
    messages = [n.message for n in test_db.query(Notification).filter(Notification.user_id == test_user.id)]
    assert f"Itinerary confirmed (ID: {body['id']})" in messages


# pylint: disable-next=redefined-outer-name
def test_checkout_with_empty_cart_creates_empty_itinerary(test_db, test_user, auth_headers):
    add_flight_to_cart(test_db, test_user)
    first = checkout(auth_headers)
    assert first.status_code == status.HTTP_201_CREATED

    second = checkout(auth_headers)
    assert second.status_code == status.HTTP_201_CREATED
    assert second.json()["itinerary"]["flights"] == []
    assert second.json()["itinerary"]["hotels"] == []
    assert len(first.json()["itinerary"]["flights"]) == 1


# pylint: disable-next=redefined-outer-name
def test_checkout_does_not_touch_other_users_cart(test_db, test_user, auth_headers):
    other = create_user(test_db)
    other_flight = add_flight_to_cart(test_db, other)

    response = checkout(auth_headers)
    assert response.status_code == status.HTTP_201_CREATED
    test_db.expire_all()
    assert test_db.get(FlightBooking, other_flight.id).itinerary_id is None


# pylint: disable-next=redefined-outer-name
def test_checkout_rejects_invalid_card(test_db, test_user, auth_headers):
    flight = add_flight_to_cart(test_db, test_user)

    response = checkout(auth_headers, valid_card(number="4539578763621487"))
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Credit card details invalid"

    expired = {"number": "4539578763621486", "expiryMonth": 1, "expiryYear": 2000}
    response = checkout(auth_headers, expired)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    test_db.expire_all()
    assert test_db.query(Booking).count() == 0
    assert test_db.query(Itinerary).count() == 0
    assert test_db.get(FlightBooking, flight.id).itinerary_id is None


def test_checkout_requires_auth():
    response = client.post("/bookings/checkout", json={"creditCard": valid_card()})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


# pylint: disable-next=redefined-outer-name
def test_checkout_missing_card_is_bad_request(auth_headers):
    response = client.post("/bookings/checkout", json={}, headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


# pylint: disable-next=redefined-outer-name
def test_list_and_get_bookings(test_db, test_user, auth_headers):
    add_flight_to_cart(test_db, test_user)
    booking_id = checkout(auth_headers).json()["id"]

    response = client.get("/bookings/", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert [b["id"] for b in response.json()] == [booking_id]

    response = client.get(f"/bookings/{booking_id}", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert len(response.json()["itinerary"]["flights"]) == 1

    response = client.get("/bookings/9999", headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND


# pylint: disable-next=redefined-outer-name
def test_other_users_booking_is_forbidden(test_db, test_user, auth_headers):
    booking_id = checkout(auth_headers).json()["id"]
    stranger = login_headers(create_user(test_db))

    assert client.get(f"/bookings/{booking_id}", headers=stranger).status_code == status.HTTP_403_FORBIDDEN
    assert client.delete(f"/bookings/{booking_id}", headers=stranger).status_code == status.HTTP_403_FORBIDDEN
    response = client.put(f"/bookings/{booking_id}", json={"creditCard": valid_card()}, headers=stranger)
    assert response.status_code == status.HTTP_403_FORBIDDEN


# pylint: disable-next=redefined-outer-name
def test_update_replaces_itinerary_contents(test_db, test_user, auth_headers, deluxe_room):
    old_flight_id = add_flight_to_cart(test_db, test_user, flight_id="AFS_1001").id
    old_stay_id = add_stay(test_db, test_user, deluxe_room, date(2030, 6, 1), date(2030, 6, 4)).id
    user_id = test_user.id
    booking = checkout(auth_headers).json()

    new_flight = add_flight_to_cart(test_db, test_user, flight_id="AFS_2002")
    response = client.put(f"/bookings/{booking['id']}", json={"creditCard": valid_card()}, headers=auth_headers)
    assert response.status_code == status.HTTP_201_CREATED
    itinerary = response.json()["itinerary"]
    assert itinerary["id"] == booking["itinerary"]["id"]
    assert [f["id"] for f in itinerary["flights"]] == [new_flight.id]
    assert itinerary["hotels"] == []

    test_db.expire_all()
    assert test_db.query(FlightBooking).filter(FlightBooking.id == old_flight_id).first() is None
    assert test_db.query(HotelBooking).filter(HotelBooking.id == old_stay_id).first() is None
    messages = [n.message for n in test_db.query(Notification).filter(Notification.user_id == user_id)]
    assert f"Itinerary updated (ID: {booking['id']})" in messages


# pylint: disable-next=redefined-outer-name
def test_update_rejects_invalid_card(test_db, test_user, auth_headers):
    flight = add_flight_to_cart(test_db, test_user)
    booking_id = checkout(auth_headers).json()["id"]

    bad_card = valid_card(number="1234567812345678")
    response = client.put(f"/bookings/{booking_id}", json={"creditCard": bad_card}, headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    test_db.expire_all()
    assert test_db.get(FlightBooking, flight.id).itinerary_id is not None


# pylint: disable-next=redefined-outer-name
def test_update_cancelled_booking_conflicts(auth_headers):
    booking_id = checkout(auth_headers).json()["id"]
    client.delete(f"/bookings/{booking_id}", headers=auth_headers)

    response = client.put(f"/bookings/{booking_id}", json={"creditCard": valid_card()}, headers=auth_headers)
    assert response.status_code == status.HTTP_409_CONFLICT


# pylint: disable-next=redefined-outer-name
def test_cancel_cascades_to_itinerary_and_children(test_db, test_user, auth_headers, deluxe_room):
    flight = add_flight_to_cart(test_db, test_user)
    stay = add_stay(test_db, test_user, deluxe_room, date(2030, 6, 1), date(2030, 6, 4))
    booking = checkout(auth_headers).json()

    response = client.delete(f"/bookings/{booking['id']}", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Booking cancelled successfully!"}

    test_db.expire_all()
    assert test_db.get(Booking, booking["id"]).status == BookingStatus.CANCELLED
    assert test_db.get(Itinerary, booking["itinerary"]["id"]).status == BookingStatus.CANCELLED
    assert test_db.get(FlightBooking, flight.id).status == FlightStatus.CANCELLED
    assert test_db.get(HotelBooking, stay.id).status == HotelBookingStatus.CANCELLED

    # a second cancel is a no-op
    response = client.delete(f"/bookings/{booking['id']}", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    cancelled = test_db.query(Notification).filter(
        Notification.user_id == test_user.id,
        Notification.message == f"Booking cancelled (ID: {booking['id']})",
    )
    assert cancelled.count() == 1


# pylint: disable-next=redefined-outer-name
def test_cancelled_stay_frees_the_room(test_db, test_user, auth_headers, deluxe_room):
    add_stay(test_db, test_user, deluxe_room, date(2030, 6, 1), date(2030, 6, 4))
    booking_id = checkout(auth_headers).json()["id"]
    client.delete(f"/bookings/{booking_id}", headers=auth_headers)

    response = client.get(
        f"/hotels/{deluxe_room.hotel_id}/bookings/availability",
        params={"startDate": "2030-06-02", "endDate": "2030-06-03", "roomType": "Deluxe"},
        headers=auth_headers,
    )
    assert response.json()["vacantRooms"] == 1


# pylint: disable-next=redefined-outer-name
def test_verify_flight_unchanged(test_db, test_user, auth_headers, fake_flights):
    flight = add_flight_to_cart(test_db, test_user, flight_id="AFS_1001")
    fake_flights.flights["1001"] = {"id": "1001", "status": "SCHEDULED"}

    response = client.get("/bookings/verify-flight", params={"flightBookingId": flight.id}, headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"message": "Your flight schedule has remained the same!"}

    test_db.expire_all()
    assert test_db.get(FlightBooking, flight.id).status == FlightStatus.SCHEDULED


# pylint: disable-next=redefined-outer-name
def test_verify_flight_cancelled_by_airline(test_db, test_user, auth_headers, fake_flights):
    flight = add_flight_to_cart(test_db, test_user, flight_id="AFS_1001")
    fake_flights.flights["1001"] = {"id": "1001", "status": "CANCELLED"}

    response = client.get("/bookings/verify-flight", params={"flightBookingId": flight.id}, headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert "has been cancelled" in response.json()["message"]

    test_db.expire_all()
    assert test_db.get(FlightBooking, flight.id).status == FlightStatus.CANCELLED
    messages = [n.message for n in test_db.query(Notification).filter(Notification.user_id == test_user.id)]
    assert "Your flight AC101 has been cancelled by the airline." in messages


# pylint: disable-next=redefined-outer-name
def test_verify_flight_already_cancelled_locally(test_db, test_user, auth_headers, fake_flights):
    flight = add_flight_to_cart(test_db, test_user, status=FlightStatus.CANCELLED)
    fake_flights.flights["1001"] = {"id": "1001", "status": "SCHEDULED"}

    response = client.get("/bookings/verify-flight", params={"flightBookingId": flight.id}, headers=auth_headers)
    assert "has been cancelled" in response.json()["message"]
    response = client.get("/bookings/verify-flight", params={"flightBookingId": flight.id}, headers=auth_headers)
    assert "has been cancelled" in response.json()["message"]

    # nothing new to tell the user about
    assert test_db.query(Notification).filter(Notification.user_id == test_user.id).count() == 0


# pylint: disable-next=redefined-outer-name
def test_verify_flight_errors(test_db, test_user, auth_headers, fake_flights):
    response = client.get("/bookings/verify-flight", params={"flightBookingId": 9999}, headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND

    other_flight = add_flight_to_cart(test_db, create_user(test_db))
    response = client.get(
        "/bookings/verify-flight", params={"flightBookingId": other_flight.id}, headers=auth_headers
    )
    assert response.status_code == status.HTTP_403_FORBIDDEN

    # unknown to the flight provider
    own_flight = add_flight_to_cart(test_db, test_user, flight_id="AFS_4040")
    response = client.get("/bookings/verify-flight", params={"flightBookingId": own_flight.id}, headers=auth_headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


# pylint: disable-next=redefined-outer-name
def test_invoice_is_a_pdf(test_db, test_user, auth_headers, deluxe_room):
    add_flight_to_cart(test_db, test_user)
    add_stay(test_db, test_user, deluxe_room, date(2030, 6, 1), date(2030, 6, 4))
    booking_id = checkout(auth_headers).json()["id"]

    response = client.get("/bookings/invoice", params={"bookingId": booking_id}, headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


# pylint: disable-next=redefined-outer-name
def test_invoice_of_unknown_or_foreign_booking(test_db, auth_headers):
    response = client.get("/bookings/invoice", params={"bookingId": 9999}, headers=auth_headers)
    assert response.status_code == status.HTTP_404_NOT_FOUND

    other_headers = login_headers(create_user(test_db))
    booking_id = checkout(other_headers).json()["id"]
    response = client.get("/bookings/invoice", params={"bookingId": booking_id}, headers=auth_headers)
    assert response.status_code == status.HTTP_403_FORBIDDEN
