"""对外接口：函数式服务 (service) 与 GraphQL 适配 (graphql_schema)。"""
