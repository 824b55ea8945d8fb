"""
用户账号模型 (UserAccount)

账号以 JSON 文档形式存放在 KV 的 user:<username> 键下，
username 同时是主键和 user_list 索引中的条目。

安全设计：
- 密码只保存 SHA-256(password + salt)，salt 为每个账号独立的随机 UUID
- VIP 实际状态在读取时计算（见 services.accounts.effective_vip），不回写存储
"""

from pydantic import BaseModel, ConfigDict, Field


class UserAccount(BaseModel):
    """
    用户账号文档

    字段说明：
    - username: 用户名，唯一
    - nickname: 昵称，注册时未填写则等于用户名
    - pass_hash / salt: 密码哈希与盐
    - verified: 是否认证（黄V），由管理员设置
    - vip: VIP 标记，由管理员设置
    - vip_expire_at: VIP 过期时间（ISO 字符串或毫秒时间戳），None 表示永不过期
    - created_at / updated_at: ISO 时间字符串
    """
    model_config = ConfigDict(populate_by_name=True)

    username: str
    nickname: str
    pass_hash: str = Field(alias="passHash")
    salt: str
    verified: bool = False
    vip: bool = False
    vip_expire_at: str | int | float | None = Field(default=None, alias="vipExpireAt")
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")

    def to_document(self) -> dict:
        """序列化为存储格式（camelCase 键）"""
        return self.model_dump(by_alias=True)
