"""GraphQL documents sent to the Soundtrack API."""

ZONES_PAGE_SIZE = 100

DISPLAY_FRAGMENT = """
fragment DisplayFragment on Displayable {
  display { image { sizes { thumbnail }}}
}
"""

PLAYLIST_FRAGMENT = """
fragment PlaylistFragment on Playlist {
  __typename
  id
  name
  createdAt
  updatedAt
  ...DisplayFragment
}
"""

SCHEDULE_FRAGMENT = """
fragment ScheduleFragment on Schedule {
  __typename
  id
  name
  createdAt
  updatedAt
  ...DisplayFragment
}
"""

ACCOUNTS = """
query Scheduler_Accounts {
  me {
    ... on PublicAPIClient {
      accounts(first: 500) {
        edges {
          node {
            id
            businessName
          }
        }
      }
    }
  }
}
"""

ACCOUNT = """
query Scheduler_Account($id: ID!) {
  account(id: $id) {
    id
    businessName
  }
}
"""

ACCOUNT_ZONES = f"""
query Scheduler_Zones($id: ID!, $cursor: String) {{
  account(id: $id) {{
    id
    soundZones(first: {ZONES_PAGE_SIZE}, after: $cursor) {{
      pageInfo {{
        hasNextPage
        endCursor
      }}
      edges {{
        node {{
          id
          name
          location {{
            id
            name
          }}
        }}
      }}
    }}
  }}
}}
"""

ZONE = """
query Scheduler_Zone($id: ID!) {
  soundZone(id: $id) {
    id
    name
    location {
      id
      name
    }
    account {
      id
    }
  }
}
"""

LIBRARY = (
    DISPLAY_FRAGMENT
    + PLAYLIST_FRAGMENT
    + SCHEDULE_FRAGMENT
    + """
query Scheduler_Library($accountId: ID!) {
  account(id: $accountId) {
    musicLibrary {
      playlists(first: 1000) {
        edges {
          node {
            ...PlaylistFragment
          }
        }
      }
      schedules(first: 1000) {
        edges {
          node {
            ...ScheduleFragment
          }
        }
      }
    }
  }
}
"""
)

ASSIGNABLE = (
    DISPLAY_FRAGMENT
    + PLAYLIST_FRAGMENT
    + SCHEDULE_FRAGMENT
    + """
query Scheduler_Assignable($assignableId: ID!) {
  playlist: playlist(id: $assignableId) {
    ...PlaylistFragment
  }
  schedule: schedule(id: $assignableId) {
    ...ScheduleFragment
  }
}
"""
)

ASSIGN = """
mutation Scheduler_Assign($zoneId: ID!, $playFromId: ID!) {
  soundZoneAssignSource(input: { soundZones: [$zoneId], source: $playFromId }) {
    soundZones
  }
}
"""

LOGIN = """
mutation Scheduler_Login($email: String!, $password: String!) {
  loginUser(input: { email: $email, password: $password }) {
    token
    expiresAt
    refreshToken
  }
}
"""

REFRESH = """
mutation Scheduler_Refresh($refreshToken: String!) {
  refreshLogin(input: { refreshToken: $refreshToken }) {
    token
    expiresAt
    refreshToken
  }
}
"""
