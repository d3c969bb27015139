"""GraphQL documents for the Ponder history collections."""

PAGE_INFO = "pageInfo { hasNextPage endCursor }"

LOAN_HISTORY = f"""
query LoanHistory($where: loanHistoryFilter, $limit: Int, $after: String) {{
  loanHistorys(where: $where, limit: $limit, after: $after, orderBy: "eventTimestamp", orderDirection: "asc") {{
    items {{
      id
      loanId
      eventType
      borrowerAddress
      domainTokenId
      domainName
      amount
      aiScore
      interestRate
      poolId
      repaymentDeadline
      eventTimestamp
    }}
    {PAGE_INFO}
  }}
}}
"""

POOL_HISTORY = f"""
query PoolHistory($where: poolHistoryFilter, $limit: Int, $after: String) {{
  poolHistorys(where: $where, limit: $limit, after: $after, orderBy: "eventTimestamp", orderDirection: "asc") {{
    items {{
      id
      poolId
      eventType
      providerAddress
      liquidityAmount
      minAiScore
      interestRate
      eventTimestamp
      pool {{ creatorAddress }}
    }}
    {PAGE_INFO}
  }}
}}
"""

AUCTION_HISTORY = f"""
query AuctionHistory($where: auctionHistoryFilter, $limit: Int, $after: String) {{
  auctionHistorys(where: $where, limit: $limit, after: $after, orderBy: "eventTimestamp", orderDirection: "asc") {{
    items {{
      id
      auctionId
      eventType
      bidderAddress
      bidAmount
      currentPrice
      finalPrice
      eventTimestamp
      auction {{
        loanId
        domainTokenId
        domainName
        borrowerAddress
        startingPrice
        loanAmount
      }}
    }}
    {PAGE_INFO}
  }}
}}
"""
