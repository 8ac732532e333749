# Accounts module
