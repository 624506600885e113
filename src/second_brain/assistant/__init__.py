"""Assistant replies, reminder suggestions and fact extraction via an LLM."""
