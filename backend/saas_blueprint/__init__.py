"""SaaS Blueprint: turns a SaaS idea into analysis, features and a tech stack."""
