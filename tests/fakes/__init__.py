"""In-memory doubles for Firestore and object storage used by unit and API tests."""

TEST_EVENT_SECRET = "test-account-event-secret"
TEST_ADMIN_SECRET = "test-admin-secret"
