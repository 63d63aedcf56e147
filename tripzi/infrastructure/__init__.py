"""Infrastructure: Firestore REST client, bulk writes and object storage backends."""
