"""会话账本的最小演示。

需要在环境变量或 .env 中设置 OPENAI_API_KEY。
"""

import json

from chat_ledger.api.graphql_schema import build_schema_for, execute, result_to_dict
from chat_ledger.api.service import ConversationService

if __name__ == "__main__":
    service = ConversationService.from_settings()

    result = service.create_conversation("Say this is a test")
    print(result)
    print(service.update_conversation(result["conversationId"], "Say this is an updated test"))
    print(service.create_conversation("Say this is an updated test"))
    print(json.dumps(service.get_all_conversations(), ensure_ascii=False, indent=2))

    schema = build_schema_for(service)
    created = execute(schema, 'mutation { createConversation(query: "Hello over GraphQL") { response conversationId } }')
    print(json.dumps(result_to_dict(created), ensure_ascii=False, indent=2))
    listed = execute(schema, "{ getAllConversations { conversationId messages { role content } } }")
    print(json.dumps(result_to_dict(listed), ensure_ascii=False, indent=2))
