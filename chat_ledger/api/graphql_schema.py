"""GraphQL 传输适配层。

用 graphql-core 从 SDL 构建可执行 schema，并把 resolver 绑定到
ConversationService。HTTP 监听不在本包范围内，任何能转发
GraphQL 请求体的服务器都可以调用 execute()。
"""

from typing import Any, Callable, Dict, Optional

from graphql import ExecutionResult, GraphQLError, GraphQLSchema, build_schema, graphql_sync

from chat_ledger.api.service import ConversationService
from chat_ledger.domain.exceptions import BusinessError


SCHEMA_SDL = """
type Message {
  role: String!
  content: String!
}

type Conversation {
  conversationId: String!
  messages: [Message!]!
}

type CreateOrUpdateConversationResponse {
  response: String!
  conversationId: String!
}

type Query {
  getAllConversations: [Conversation!]!
}

type Mutation {
  createConversation(query: String!): CreateOrUpdateConversationResponse!
  updateConversation(conversationId: String!, query: String!): CreateOrUpdateConversationResponse!
}
"""


def _business_errors(resolver: Callable[..., Any]) -> Callable[..., Any]:
    """把 BusinessError 转成带 extensions 的 GraphQLError。"""

    def wrapper(root: Any, info: Any, **kwargs: Any) -> Any:
        try:
            return resolver(root, info, **kwargs)
        except BusinessError as e:
            raise GraphQLError(
                e.message,
                original_error=e,
                extensions={"code": e.code, "http_status": e.http_status},
            ) from e

    return wrapper


def build_schema_for(service: ConversationService) -> GraphQLSchema:
    schema = build_schema(SCHEMA_SDL)

    def resolve_get_all(_root, _info):
        return service.get_all_conversations()

    def resolve_create(_root, _info, query):
        return service.create_conversation(query)

    def resolve_update(_root, _info, conversationId, query):
        return service.update_conversation(conversationId, query)

    schema.query_type.fields["getAllConversations"].resolve = _business_errors(resolve_get_all)
    schema.mutation_type.fields["createConversation"].resolve = _business_errors(resolve_create)
    schema.mutation_type.fields["updateConversation"].resolve = _business_errors(resolve_update)
    return schema


def execute(
    schema: GraphQLSchema,
    source: str,
    variables: Optional[Dict[str, Any]] = None,
    operation_name: Optional[str] = None,
) -> ExecutionResult:
    return graphql_sync(schema, source, variable_values=variables, operation_name=operation_name)


def result_to_dict(result: ExecutionResult) -> Dict[str, Any]:
    """按 GraphQL over HTTP 的响应格式输出（data / errors）。"""

    payload: Dict[str, Any] = {"data": result.data}
    if result.errors:
        payload["errors"] = [err.formatted for err in result.errors]
    return payload
