# =============================================================================
# Services Package — Business Logic
# =============================================================================
#   - storage.py: upload persistence with generated file names
#   - parser.py: PDF parsing with Docling
#   - chunker.py: fixed-size character windows with overlap
#   - embedder.py: OpenAI-compatible embedding generation (batched)
#   - vectorstore.py: pluggable vector store protocol (Qdrant, Chroma)
#   - llm.py: multi-provider LLM abstraction (OpenAI-compatible, Anthropic)
#   - chat.py: retrieve → prompt → generate
# =============================================================================
