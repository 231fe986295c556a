"""Development identity provider - the bearer token is taken as the user id

Never enable outside local development: any non-empty token is accepted.
"""

from memento_insights.config import Settings
from memento_insights.providers.base import IdentityProvider, UserIdentity


class DevIdentityProvider(IdentityProvider):

    def __init__(self, settings: Settings | None = None):
        pass

    def resolve(self, token: str) -> UserIdentity | None:
        token = token.strip()
        return UserIdentity(id=token) if token else None
