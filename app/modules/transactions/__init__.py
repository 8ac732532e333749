# Transactions module
