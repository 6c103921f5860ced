"""Key-value store key templates and TTL constants.

Centralized management of all keys used in the key-value store to prevent
conflicts and make maintenance easier.
"""


class KVKeys:
    """Key templates and helper methods."""

    # ============================================================================
    # Visitor Stats Keys
    # ============================================================================

    # Total visit counter
    # Format: visitors:total
    VISITORS_TOTAL = "visitors:total"

    # Daily visit counter
    # Format: visitors:daily:{YYYY-MM-DD}
    # TTL: 60 days
    VISITORS_DAILY_TTL = 60 * 60 * 24 * 60

    @staticmethod
    def visitors_daily(date_key: str) -> str:
        """
        Get daily visitor counter key.

        Args:
            date_key: Local date in the visitor timezone (YYYY-MM-DD).

        Returns:
            Key string.
        """
        return f"visitors:daily:{date_key}"

    # ============================================================================
    # Translation Sync Keys
    # ============================================================================

    # Report of the most recent translation sync run (JSON)
    # Format: ai_translation:last_sync
    AI_TRANSLATION_LAST_SYNC = "ai_translation:last_sync"
