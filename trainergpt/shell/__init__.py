"""Coach shell: instruction, model client, agent loop and chat session."""
