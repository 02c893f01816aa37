from io import BytesIO
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from travel_app.models.booking import Booking
from travel_app.models.user import User

TABLE_STYLE = TableStyle(
    [
        ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.black),
    ]
)


def _fmt(value) -> str:
    if value is None:
        return "-"
    if hasattr(value, "strftime"):
        return value.strftime("%Y-%m-%d %H:%M") if hasattr(value, "hour") else value.strftime("%Y-%m-%d")
    return str(getattr(value, "value", value))


def render_invoice(booking: Booking, user: User) -> bytes:
    """Render a booking and its itinerary as a PDF invoice."""
    itinerary = booking.itinerary
    flights = itinerary.flights if itinerary else []
    hotels = itinerary.hotels if itinerary else []

    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"INV-{booking.id}")
    styles = getSampleStyleSheet()
    story = [
        Paragraph("<b>Trip Booking Invoice</b>", styles["Title"]),
        Spacer(1, 12),
        Paragraph(f"Invoice Number: INV-{booking.id}", styles["Normal"]),
        Paragraph(f"Date of Booking: {_fmt(booking.booking_date)}", styles["Normal"]),
        Paragraph(f"Customer: {user.first_name} {user.last_name}", styles["Normal"]),
        Paragraph(f"Itinerary ID: {itinerary.id if itinerary else '-'}", styles["Normal"]),
        Paragraph(f"Status: {_fmt(booking.status)}", styles["Normal"]),
        Spacer(1, 18),
    ]

    totals = {}
    story.append(Paragraph("Flights", styles["Heading2"]))
    if flights:
        rows = [["Flight", "Airline", "From", "To", "Departure", "Arrival", "Status", "Price"]]
        for flight in flights:
            rows.append([
                flight.flight_number,
                flight.airline_name or "-",
                flight.origin_code,
                flight.destination_code,
                _fmt(flight.departure_time),
                _fmt(flight.arrival_time),
                _fmt(flight.status),
                f"{flight.price:,.2f} {flight.currency}",
            ])
            totals[flight.currency] = totals.get(flight.currency, 0) + flight.price
        table = Table(rows, repeatRows=1)
        table.setStyle(TABLE_STYLE)
        story.append(table)
    else:
        story.append(Paragraph("No flights booked.", styles["Normal"]))
    story.append(Spacer(1, 18))

    story.append(Paragraph("Hotels", styles["Heading2"]))
    if hotels:
        rows = [["Hotel", "Room", "Check-in", "Check-out", "Nights", "Status", "Price"]]
        for stay in hotels:
            nights = max(1, (stay.check_out_date - stay.check_in_date).days)
            price = nights * stay.room.price_per_night
            rows.append([
                stay.hotel.name,
                stay.room.type,
                _fmt(stay.check_in_date),
                _fmt(stay.check_out_date),
                str(nights),
                _fmt(stay.status),
                f"{price:,.2f}",
            ])
            totals["hotel"] = totals.get("hotel", 0) + price
        table = Table(rows, repeatRows=1)
        table.setStyle(TABLE_STYLE)
        story.append(table)
    else:
        story.append(Paragraph("No hotel stays booked.", styles["Normal"]))
    story.append(Spacer(1, 18))

    for label, amount in totals.items():
        name = "Hotels" if label == "hotel" else f"Flights ({label})"
        story.append(Paragraph(f"<b>Total {name}: {amount:,.2f}</b>", styles["Normal"]))

    doc.build(story)
    pdf = buffer.getvalue()
    buffer.close()
    return pdf
