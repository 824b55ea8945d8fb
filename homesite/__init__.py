"""
Home Portfolio Service - 应用主包

个人主页站点的后端服务，包含以下子模块：
- api/        : API 路由和依赖注入
- auth/       : 认证（管理员会话 Cookie、用户 Bearer Token、密码哈希）
- infra/      : 基础设施（KV 存储、日志）
- middleware/ : 请求追踪、CORS
- schemas/    : Pydantic 请求/响应模式
- services/   : 业务逻辑服务层（主页数据、账号、管理员、访客 IP）

项目架构遵循分层设计：
    API层 → 服务层 → KV 存储层
"""
