from pydantic import ConfigDict

from schemas.base import CamelModel


class Profile(CamelModel):
    model_config = ConfigDict(frozen=True)

    nickname: str
    avatar: str = ""


class UserInfo(CamelModel):
    id: str
    nickname: str
    avatar: str = ""

    @classmethod
    def from_profile(cls, connection_id: str, profile: Profile) -> "UserInfo":
        return cls(id=connection_id, nickname=profile.nickname, avatar=profile.avatar)


class RoomMember(UserInfo):
    is_creator: bool = False
