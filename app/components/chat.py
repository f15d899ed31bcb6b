"""AI analyst chat component."""

from __future__ import annotations

from typing import List, Optional

import streamlit as st

from backend.models.property import FilterSpec, Property


def render_chat(records: List[Property], filters: Optional[FilterSpec], backend_client, input_key: str = "ai_chat") -> None:
    history = st.session_state.setdefault("chat_history", [])

    st.markdown("### Ask the Data")
    for message in history:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])

    prompt = st.chat_input("Ask about prices, bedrooms, days on market...", key=input_key)
    if prompt:
        history.append({"role": "user", "content": prompt})
        with st.chat_message("user"):
            st.markdown(prompt)
        reply = backend_client.ask(prompt, records, filters)
        content = reply.answer
        if reply.source == "fallback":
            content += f"\n\n_Local analysis (AI unavailable: {reply.fallback_reason})._"
        history.append({"role": "assistant", "content": content})
        with st.chat_message("assistant"):
            st.markdown(content)
