from __future__ import annotations


class ValidationFailure(Exception):
    """Raised by a step validator when the answer is not acceptable.

    The message is shown to the user as-is, so it must be plain language.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoActiveSession(Exception):
    """The owner has no flow in progress in this session store."""

    def __init__(self, owner_id):
        super().__init__(f"no active session for {owner_id}")
        self.owner_id = owner_id


class CompletionFailure(Exception):
    """The completion handler of a flow raised. The session is already gone."""

    def __init__(self, flow_name: str, owner_id):
        super().__init__(f"completion of flow '{flow_name}' failed for {owner_id}")
        self.flow_name = flow_name
        self.owner_id = owner_id
