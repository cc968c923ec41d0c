from __future__ import annotations


class PostcordError(Exception):
    """Base for errors that end a flow with a private reply to the user."""

    user_message = "Something went wrong."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.user_message)
        self.detail = detail

    def __str__(self) -> str:
        return self.user_message


# ---- not found -------------------------------------------------------------


class NotFound(PostcordError):
    user_message = "Not found!"


class ProfileNotFound(NotFound):
    user_message = "Profile not found!"


class OwnedProfileNotFound(ProfileNotFound):
    user_message = "Profile not found or you don't own it!"


class PostNotFound(NotFound):
    user_message = "Post not found!"


class RegionNotFound(NotFound):
    user_message = ":x: Region not found"


class FeedChannelNotConfigured(NotFound):
    user_message = ":x: Feed channel not found, ask an admin to set it up"


class ChannelNotFound(NotFound):
    user_message = ":x: Channel not found"


class MessageNotFound(NotFound):
    user_message = ":x: The message for this post no longer exists"


# ---- flow errors -----------------------------------------------------------


class InvalidChannelType(PostcordError):
    user_message = ":x: Channel is not a text channel"


class UnusableHandle(PostcordError):
    user_message = ":x: This profile's handle is too long to post with."


class NoOwnedProfiles(PostcordError):
    user_message = "Create a profile first."


class InvalidContent(PostcordError):
    user_message = "Posts must be between 1 and 280 characters."

    def __init__(self, length: int, max_length: int) -> None:
        super().__init__(f"content length {length} outside 1..{max_length}")
        self.user_message = f"Posts must be between 1 and {max_length} characters."


class SessionExpired(PostcordError):
    user_message = "This form has expired. Please start again."


class MalformedToken(PostcordError):
    user_message = "This control is no longer valid."


class NotificationDeliveryFailure(PostcordError):
    """Raised inside the notifier only; logged and never shown to anyone."""

    user_message = "Reply notification could not be delivered."
