"""Firestore collection names (schema-in-code).

Firestore has no DDL or migrations. Collections are created automatically
when the mobile app first writes a document. Use these constants so
collection names stay consistent with the client apps.
"""

# Profiles and social graph
COLLECTION_USERS = "users"
COLLECTION_PUBLIC_USERS = "public_users"

# Trips and their satellites
COLLECTION_TRIPS = "trips"
COLLECTION_RATINGS = "ratings"
COLLECTION_STORIES = "stories"
COLLECTION_GROUP_COMMENTS = "comments"  # sub-collection under trips and stories

# Moderation and feedback
COLLECTION_REPORTS = "reports"
COLLECTION_SUGGESTIONS = "suggestions"
COLLECTION_BUGS = "bugs"
COLLECTION_FEATURE_REQUESTS = "feature_requests"
FEEDBACK_COLLECTIONS = (
    COLLECTION_SUGGESTIONS,
    COLLECTION_BUGS,
    COLLECTION_FEATURE_REQUESTS,
)

# Messaging
COLLECTION_CHATS = "chats"
SUBCOLLECTION_MESSAGES = "messages"
SUBCOLLECTION_LIVE_SHARES = "live_shares"

# Notifications: notifications/{uid}/items/{id}
COLLECTION_NOTIFICATIONS = "notifications"
SUBCOLLECTION_NOTIFICATION_ITEMS = "items"
COLLECTION_PUSH_TOKENS = "push_tokens"

CHAT_TYPE_DIRECT = "direct"
