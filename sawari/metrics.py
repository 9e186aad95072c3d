from prometheus_client import Counter, Histogram

# Reservation metrics
RESERVATION_ATTEMPTS = Counter("sawari_reservation_attempts_total", "Seat reservation attempts", ["result"])
RESERVATION_LATENCY = Histogram("sawari_reservation_latency_seconds", "Latency of the seat reservation transaction")
TRANSACTION_RETRIES = Counter("sawari_transaction_retries_total", "Transactions re-run after a write conflict", ["backend"])

# Admin seat resets (cancellations, bulk clears)
SEATS_RELEASED = Counter("sawari_seats_released_total", "Seats returned to available by administrative actions")
